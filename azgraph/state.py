"""
Run-scoped job state: the entities and relationships collected so far,
plus a small key-value side channel for values passed between steps.

Additive only. Steps run one at a time, so no locking is done here.
"""
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from azgraph.errors import DuplicateKeyError
from azgraph.models.entity import Entity, Relationship

EntityFilter = Mapping[str, str]


class JobState:
    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._entities: Dict[str, Entity] = {}
        self._relationships: Dict[str, Relationship] = {}
        self._data: Dict[str, Any] = dict(data or {})
        self._attribution: Dict[str, str] = {}
        # lower-cased key -> stored key, for ids whose casing varies between APIs
        self._folded_keys: Dict[str, str] = {}
        self.current_step: Optional[str] = None

    # ----------------------------------------------------------- entities
    def add_entity(self, entity: Entity) -> Entity:
        if entity.key in self._entities:
            raise DuplicateKeyError(entity.key, "entity")
        self._entities[entity.key] = entity
        self._folded_keys.setdefault(entity.key.lower(), entity.key)
        if self.current_step:
            self._attribution[entity.key] = self.current_step
        return entity

    def add_entities(self, entities: Iterable[Entity]) -> List[Entity]:
        return [self.add_entity(e) for e in entities]

    def find_entity(self, key: Optional[str], ignore_case: bool = False) -> Optional[Entity]:
        if not key:
            return None
        entity = self._entities.get(key)
        if entity is None and ignore_case:
            folded = self._folded_keys.get(key.lower())
            entity = self._entities.get(folded) if folded else None
        return entity

    def has_key(self, key: str) -> bool:
        return key in self._entities or key in self._relationships

    def iterate_entities(self, filter: EntityFilter, callback: Callable[[Entity], None]) -> None:
        _type = filter.get("_type")
        # Snapshot so callbacks may add entities of the same type.
        for entity in list(self._entities.values()):
            if _type is None or entity.type == _type:
                callback(entity)

    # ------------------------------------------------------ relationships
    def add_relationship(self, relationship: Relationship) -> Relationship:
        if relationship.key in self._relationships:
            raise DuplicateKeyError(relationship.key, "relationship")
        self._relationships[relationship.key] = relationship
        if self.current_step:
            self._attribution[relationship.key] = self.current_step
        return relationship

    def add_relationships(self, relationships: Iterable[Relationship]) -> List[Relationship]:
        return [self.add_relationship(r) for r in relationships]

    def iterate_relationships(
        self, filter: EntityFilter, callback: Callable[[Relationship], None]
    ) -> None:
        _type = filter.get("_type")
        for rel in list(self._relationships.values()):
            if _type is None or rel.type == _type:
                callback(rel)

    # --------------------------------------------------------------- data
    def get_data(self, key: str) -> Any:
        return self._data.get(key)

    def set_data(self, key: str, value: Any) -> None:
        self._data[key] = value

    # ------------------------------------------------------------- views
    @property
    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    @property
    def relationships(self) -> List[Relationship]:
        return list(self._relationships.values())

    collected_entities = entities
    collected_relationships = relationships

    def step_of(self, key: str) -> Optional[str]:
        return self._attribution.get(key)

    def items_for_step(self, step_id: str) -> Dict[str, List[Any]]:
        return {
            "entities": [e for e in self._entities.values() if self._attribution.get(e.key) == step_id],
            "relationships": [
                r for r in self._relationships.values() if self._attribution.get(r.key) == step_id
            ],
        }

    def counts_by_type(self) -> Dict[str, Dict[str, int]]:
        return {
            "entities": dict(Counter(e.type for e in self._entities.values())),
            "relationships": dict(Counter(r.type for r in self._relationships.values())),
        }
