from typing import Any, Dict, Optional

from azure.mgmt.managementgroups import ManagementGroupsAPI

from azgraph.clients.base import ResourceClient
from azgraph.provider import to_raw


class ManagementGroupClient(ResourceClient):
    def _create_client(self) -> ManagementGroupsAPI:
        return ManagementGroupsAPI(self.credential)

    def fetch_management_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        """The group with its whole subtree expanded under ``children``."""
        group = self._call(
            f"management_groups.get({group_id})",
            lambda: self.client.management_groups.get(group_id, expand="children", recurse=True),
        )
        return to_raw(group)
