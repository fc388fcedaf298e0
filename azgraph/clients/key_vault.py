from azure.mgmt.keyvault import KeyVaultManagementClient

from azgraph.clients.base import RawCallback, ResourceClient
from azgraph.models.scope import ResourceGroupScope


class KeyVaultClient(ResourceClient):
    def _create_client(self) -> KeyVaultManagementClient:
        return KeyVaultManagementClient(self.credential, self.config.subscription_id)

    def iterate_key_vaults(self, resource_group: ResourceGroupScope, callback: RawCallback) -> None:
        self._iterate(
            f"vaults.list_by_resource_group({resource_group.name})",
            lambda: self.client.vaults.list_by_resource_group(resource_group.name),
            callback,
        )
