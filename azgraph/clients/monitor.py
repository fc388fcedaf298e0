from azure.mgmt.monitor import MonitorManagementClient

from azgraph.clients.base import RawCallback, ResourceClient


class MonitorClient(ResourceClient):
    def _create_client(self) -> MonitorManagementClient:
        return MonitorManagementClient(self.credential, self.config.subscription_id)

    def iterate_diagnostic_settings(self, resource_id: str, callback: RawCallback) -> None:
        def pages():
            result = self.client.diagnostic_settings.list(resource_uri=resource_id)
            # Older API versions return a collection object instead of a pager.
            return getattr(result, "value", result) or []

        self._iterate(f"diagnostic_settings.list({resource_id})", pages, callback)
