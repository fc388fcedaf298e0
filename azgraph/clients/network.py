from azure.mgmt.network import NetworkManagementClient

from azgraph.clients.base import RawCallback, ResourceClient


class NetworkClient(ResourceClient):
    """Subscription-wide listings; every ``list_all`` walks every page."""

    def _create_client(self) -> NetworkManagementClient:
        return NetworkManagementClient(self.credential, self.config.subscription_id)

    def iterate_virtual_networks(self, callback: RawCallback) -> None:
        self._iterate("virtual_networks.list_all", self.client.virtual_networks.list_all, callback)

    def iterate_network_security_groups(self, callback: RawCallback) -> None:
        self._iterate(
            "network_security_groups.list_all",
            self.client.network_security_groups.list_all,
            callback,
        )

    def iterate_network_interfaces(self, callback: RawCallback) -> None:
        self._iterate("network_interfaces.list_all", self.client.network_interfaces.list_all, callback)

    def iterate_public_ip_addresses(self, callback: RawCallback) -> None:
        self._iterate("public_ip_addresses.list_all", self.client.public_ip_addresses.list_all, callback)

    def iterate_load_balancers(self, callback: RawCallback) -> None:
        self._iterate("load_balancers.list_all", self.client.load_balancers.list_all, callback)
