from azure.mgmt.advisor import AdvisorManagementClient

from azgraph.clients.base import RawCallback, ResourceClient


class AdvisorClient(ResourceClient):
    def _create_client(self) -> AdvisorManagementClient:
        return AdvisorManagementClient(self.credential, self.config.subscription_id)

    def iterate_recommendations(self, callback: RawCallback) -> None:
        self._iterate("recommendations.list", self.client.recommendations.list, callback)
