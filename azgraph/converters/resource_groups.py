from typing import Dict

from azgraph.constants import RESOURCE_GROUP_ENTITY
from azgraph.models.entity import (
    Entity,
    Relationship,
    RelationshipClass,
    create_direct_relationship,
    create_integration_entity,
)
from azgraph.provider import AzureWebLinker


def create_resource_group_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": RESOURCE_GROUP_ENTITY.type,
            "_class": RESOURCE_GROUP_ENTITY.classes,
            "displayName": data.get("name"),
            "region": data.get("location"),
            "provisioningState": (data.get("properties") or {}).get("provisioningState"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
        tag_properties=["environment"],
    )


def create_resource_group_resource_relationship(resource_group: Entity, resource: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.HAS, from_entity=resource_group, to_entity=resource
    )
