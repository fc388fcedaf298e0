from azure.mgmt.resource import ResourceManagementClient

from azgraph.clients.base import RawCallback, ResourceClient


class ResourcesClient(ResourceClient):
    def _create_client(self) -> ResourceManagementClient:
        return ResourceManagementClient(self.credential, self.config.subscription_id)

    def iterate_resource_groups(self, callback: RawCallback) -> None:
        self._iterate("resource_groups.list", self.client.resource_groups.list, callback)
