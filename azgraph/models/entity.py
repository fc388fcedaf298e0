from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from azgraph.errors import IntegrationError


class RelationshipClass(str, Enum):
    HAS        = "HAS"
    USES       = "USES"
    CONTAINS   = "CONTAINS"
    IDENTIFIED = "IDENTIFIED"
    PROTECTS   = "PROTECTS"


ClassLike = Union[RelationshipClass, str]


def _class_value(_class: ClassLike) -> str:
    return _class.value if isinstance(_class, RelationshipClass) else str(_class)


@dataclass(frozen=True)
class EntitySchema:
    type: str
    classes: Tuple[str, ...]
    resource_name: str


@dataclass(frozen=True)
class RelationshipSchema:
    type: str
    relationship_class: str
    source_type: str
    target_type: str

    @classmethod
    def between(
        cls,
        _class: ClassLike,
        source_type: str,
        target_type: str,
        type: Optional[str] = None,
    ) -> "RelationshipSchema":
        value = _class_value(_class)
        return cls(
            type=type or generate_relationship_type(value, source_type, target_type),
            relationship_class=value,
            source_type=source_type,
            target_type=target_type,
        )


@dataclass
class Entity:
    key: str
    type: str
    classes: List[str]
    properties: Dict[str, Any] = field(default_factory=dict)
    raw_data: List[Dict[str, Any]] = field(default_factory=list)

    def __getitem__(self, name: str) -> Any:
        return self.properties[name]

    def __contains__(self, name: str) -> bool:
        return name in self.properties

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def to_dict(self, include_raw_data: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "_key": self.key,
            "_type": self.type,
            "_class": list(self.classes),
        }
        out.update(self.properties)
        if include_raw_data and self.raw_data:
            out["_rawData"] = list(self.raw_data)
        return out


@dataclass
class Relationship:
    key: str
    type: str
    relationship_class: str
    from_key: str
    from_type: str
    to_key: str
    to_type: str
    properties: Dict[str, Any] = field(default_factory=dict)
    display_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "_class": self.relationship_class,
            "_fromEntityKey": self.from_key,
            "_key": self.key,
            "_toEntityKey": self.to_key,
            "_type": self.type,
            "displayName": self.display_name or self.relationship_class,
        }
        out.update(self.properties)
        return out


_PRIMITIVES = (str, int, float, bool)


def _is_primitive(value: Any) -> bool:
    if isinstance(value, _PRIMITIVES):
        return True
    if isinstance(value, list):
        return all(isinstance(v, _PRIMITIVES) for v in value)
    return False


def assign_tags(
    entity: Entity,
    tags: Optional[Mapping[str, Any]],
    tag_properties: Iterable[str] = (),
) -> None:
    """Copy provider tags onto ``entity`` as ``tag.<name>``; lift ``tag_properties``."""
    if not tags or not isinstance(tags, Mapping):
        return
    lifted = set(tag_properties)
    for name, value in tags.items():
        entity.properties[f"tag.{name}"] = value
        if name in lifted:
            entity.properties[name] = value


def set_raw_data(entity: Entity, name: str, raw_data: Any) -> None:
    if any(r["name"] == name for r in entity.raw_data):
        raise IntegrationError(
            f"Raw data '{name}' already set on entity", details={"key": entity.key}
        )
    entity.raw_data.append({"name": name, "rawData": raw_data})


def create_integration_entity(
    source: Optional[Mapping[str, Any]],
    assign: Mapping[str, Any],
    tag_properties: Iterable[str] = (),
) -> Entity:
    """
    Build an entity from a raw provider payload.

    Primitive top-level fields of ``source`` are copied, provider tags become
    ``tag.*`` properties and ``assign`` is applied last. An assigned ``None``
    removes the property, so optional fields are absent rather than null.
    The key is ``assign["_key"]`` or, failing that, ``source["id"]``.
    """
    source = source or {}
    assign = dict(assign)

    key = assign.pop("_key", None) or source.get("id")
    _type = assign.pop("_type")
    _class = assign.pop("_class")
    if not key:
        raise IntegrationError(
            "Unable to derive entity key", details={"_type": _type}
        )

    properties = {
        k: v
        for k, v in source.items()
        if k != "tags" and v is not None and _is_primitive(v)
    }
    entity = Entity(
        key=key,
        type=_type,
        classes=[_class] if isinstance(_class, str) else list(_class),
        properties=properties,
    )
    if source:
        entity.raw_data.append({"name": "default", "rawData": dict(source)})

    assign_tags(entity, source.get("tags"), tag_properties)

    for name, value in assign.items():
        if value is None:
            entity.properties.pop(name, None)
        else:
            entity.properties[name] = value

    if "displayName" not in entity.properties:
        entity.properties["displayName"] = entity.properties.get("name") or key

    return entity


def generate_relationship_key(from_key: str, _class: ClassLike, to_key: str) -> str:
    return f"{from_key}|{_class_value(_class).lower()}|{to_key}"


def generate_relationship_type(_class: ClassLike, from_type: str, to_type: str) -> str:
    """
    ``azure_account`` HAS ``azure_keyvault_service`` → ``azure_account_has_keyvault_service``.

    Leading tokens shared with ``from_type`` are dropped from ``to_type``,
    keeping at least its last token.
    """
    from_parts = from_type.split("_")
    to_parts = to_type.split("_")
    shared = 0
    while (
        shared < len(to_parts) - 1
        and shared < len(from_parts)
        and from_parts[shared] == to_parts[shared]
    ):
        shared += 1
    return "_".join([from_type, _class_value(_class).lower()] + to_parts[shared:])


def create_direct_relationship(
    _class: ClassLike,
    from_entity: Optional[Entity] = None,
    to_entity: Optional[Entity] = None,
    from_key: Optional[str] = None,
    from_type: Optional[str] = None,
    to_key: Optional[str] = None,
    to_type: Optional[str] = None,
    properties: Optional[Mapping[str, Any]] = None,
) -> Relationship:
    if from_entity is not None:
        from_key, from_type = from_entity.key, from_entity.type
    if to_entity is not None:
        to_key, to_type = to_entity.key, to_entity.type
    if not (from_key and from_type and to_key and to_type):
        raise IntegrationError(
            "Relationship endpoints require both key and type",
            details={"from": from_key, "to": to_key},
        )

    value = _class_value(_class)
    props = dict(properties or {})
    rel_type = props.pop("_type", None) or generate_relationship_type(value, from_type, to_type)
    key = props.pop("_key", None) or generate_relationship_key(from_key, value, to_key)
    display_name = props.pop("displayName", value)

    return Relationship(
        key=key,
        type=rel_type,
        relationship_class=value,
        from_key=from_key,
        from_type=from_type,
        to_key=to_key,
        to_type=to_type,
        properties=props,
        display_name=display_name,
    )
