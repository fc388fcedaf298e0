import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from azgraph.models.entity import EntitySchema, RelationshipSchema

if TYPE_CHECKING:
    from azgraph.config import IntegrationConfig
    from azgraph.state import JobState


@dataclass
class IntegrationInstance:
    id: str
    name: str
    config: "IntegrationConfig"


@dataclass
class StepExecutionContext:
    instance: IntegrationInstance
    job_state: "JobState"
    logger: logging.Logger


@dataclass(frozen=True)
class Step:
    """
    Static description of one fetch-convert-persist unit.

    ``entities`` and ``relationships`` are the shapes the handler may
    produce; ``depends_on`` lists step ids that must succeed first.
    """
    id: str
    name: str
    entities: Tuple[EntitySchema, ...]
    relationships: Tuple[RelationshipSchema, ...]
    depends_on: Tuple[str, ...]
    execution_handler: Callable[[StepExecutionContext], None] = field(compare=False)


@dataclass(frozen=True)
class StepStartState:
    disabled: bool = False


StepStartStates = Dict[str, StepStartState]


def declared_types(step: Step) -> Tuple[set, set]:
    return (
        {e.type for e in step.entities},
        {r.type for r in step.relationships},
    )


def child_logger(logger: Optional[logging.Logger], step: Step) -> logging.Logger:
    base = logger or logging.getLogger("azgraph")
    return base.getChild(step.id)


def step_summary(step: Step) -> Dict[str, Any]:
    return {
        "id": step.id,
        "name": step.name,
        "dependsOn": list(step.depends_on),
        "entities": [e.type for e in step.entities],
        "relationships": [r.type for r in step.relationships],
    }
