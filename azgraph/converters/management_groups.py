from typing import Any, Dict, List

from azgraph.constants import MANAGEMENT_GROUP_ENTITY
from azgraph.models.entity import Entity, create_integration_entity
from azgraph.provider import AzureWebLinker


def create_management_group_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": MANAGEMENT_GROUP_ENTITY.type,
            "_class": MANAGEMENT_GROUP_ENTITY.classes,
            "displayName": data.get("displayName") or data.get("name"),
            "tenantId": data.get("tenantId"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def is_management_group(data: Dict[str, Any]) -> bool:
    return (data.get("type") or "").lower().endswith("microsoft.management/managementgroups")


def management_group_children(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Child management groups; subscriptions in ``children`` are left out."""
    return [c for c in data.get("children") or [] if is_management_group(c)]
