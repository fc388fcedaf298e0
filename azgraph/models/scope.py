"""
Typed projections of stored entities, used to scope child listings.

Each ``from_entity`` narrows a stored entity once and returns ``None`` when
a required field is missing, so callers skip that parent.
"""
from dataclasses import dataclass
from typing import Optional

from azgraph.models.entity import Entity
from azgraph.provider import get_event_grid_domain_name_from_id, resource_group_name


@dataclass(frozen=True)
class ResourceGroupScope:
    id: str
    name: str

    @classmethod
    def from_entity(cls, entity: Entity) -> Optional["ResourceGroupScope"]:
        name = entity.get("name")
        if not name:
            return None
        return cls(id=entity.key, name=name)


@dataclass(frozen=True)
class DomainScope:
    id: str
    name: str
    resource_group: str

    @classmethod
    def from_entity(cls, entity: Entity) -> Optional["DomainScope"]:
        name = entity.get("name")
        group = resource_group_name(entity.key)
        if not (name and group):
            return None
        return cls(id=entity.key, name=name, resource_group=group)


@dataclass(frozen=True)
class DomainTopicScope:
    id: str
    name: str
    domain_name: str
    resource_group: str

    @classmethod
    def from_entity(cls, entity: Entity) -> Optional["DomainTopicScope"]:
        name = entity.get("name")
        domain = get_event_grid_domain_name_from_id(entity.key)
        group = resource_group_name(entity.key)
        if not (name and domain and group):
            return None
        return cls(id=entity.key, name=name, domain_name=domain, resource_group=group)


@dataclass(frozen=True)
class TopicScope:
    id: str
    name: str
    resource_group: str
    provider_namespace: str
    resource_type_name: str

    @classmethod
    def from_entity(cls, entity: Entity) -> Optional["TopicScope"]:
        name = entity.get("name")
        group = resource_group_name(entity.key)
        # "Microsoft.EventGrid/topics"
        namespace, _, type_name = (entity.get("type") or "").partition("/")
        if not (name and group and namespace and type_name):
            return None
        return cls(
            id=entity.key,
            name=name,
            resource_group=group,
            provider_namespace=namespace,
            resource_type_name=type_name,
        )
