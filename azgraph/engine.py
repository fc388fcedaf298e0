"""
Step runner.

Steps run one at a time in dependency order (ties broken by declaration
order). A step runs only when every dependency succeeded; a failing
handler is recorded and the run carries on with independent steps.
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from azgraph.errors import StepDependencyError
from azgraph.models.step import (
    IntegrationInstance,
    Step,
    StepExecutionContext,
    StepStartStates,
    child_logger,
    declared_types,
)
from azgraph.state import JobState

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    SUCCESS                    = "success"
    FAILURE                    = "failure"
    DISABLED                   = "disabled"
    SKIPPED_DEPENDENCY_FAILURE = "skipped_dependency_failure"


@dataclass
class StepResult:
    id: str
    name: str
    status: StepStatus
    depends_on: List[str] = field(default_factory=list)
    entity_count: int = 0
    relationship_count: int = 0
    duration: float = 0.0
    error: Optional[Exception] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "dependsOn": self.depends_on,
            "entities": self.entity_count,
            "relationships": self.relationship_count,
            "durationMs": int(self.duration * 1000),
            "error": str(self.error) if self.error else None,
        }


@dataclass
class ExecutionResult:
    steps: List[StepResult]
    job_state: JobState

    @property
    def failed(self) -> bool:
        return any(r.status == StepStatus.FAILURE for r in self.steps)

    def result_for(self, step_id: str) -> Optional[StepResult]:
        return next((r for r in self.steps if r.id == step_id), None)


def build_dependency_graph(steps: Sequence[Step]) -> List[Step]:
    """
    Validate ``steps`` and return them in execution order.

    Raises StepDependencyError on duplicate ids, unknown dependencies
    and cycles.
    """
    by_id: Dict[str, Step] = {}
    for step in steps:
        if step.id in by_id:
            raise StepDependencyError(f"Duplicate step id: {step.id}", details={"step": step.id})
        by_id[step.id] = step

    for step in steps:
        for dep in step.depends_on:
            if dep not in by_id:
                raise StepDependencyError(
                    f"Step {step.id} depends on unknown step {dep}",
                    details={"step": step.id, "dependency": dep},
                )

    ordered: List[Step] = []
    done: Set[str] = set()
    visiting: List[str] = []

    def visit(step: Step) -> None:
        if step.id in done:
            return
        if step.id in visiting:
            cycle = visiting[visiting.index(step.id):] + [step.id]
            raise StepDependencyError(
                f"Dependency cycle: {' -> '.join(cycle)}", details={"cycle": cycle}
            )
        visiting.append(step.id)
        for dep in step.depends_on:
            visit(by_id[dep])
        visiting.pop()
        done.add(step.id)
        ordered.append(step)

    for step in steps:
        visit(step)
    return ordered


def with_dependencies(steps: Sequence[Step], wanted: Iterable[str]) -> List[Step]:
    """``wanted`` step ids plus everything they transitively depend on."""
    by_id = {s.id: s for s in steps}
    keep: Set[str] = set()
    stack = list(wanted)
    while stack:
        step_id = stack.pop()
        if step_id in keep:
            continue
        if step_id not in by_id:
            raise StepDependencyError(f"Unknown step: {step_id}", details={"step": step_id})
        keep.add(step_id)
        stack.extend(by_id[step_id].depends_on)
    return [s for s in steps if s.id in keep]


def validate_step_output(step: Step, job_state: JobState, log: Optional[logging.Logger] = None) -> List[str]:
    """Warn about entity / relationship types ``step`` produced but never declared."""
    log = log or logger
    entity_types, relationship_types = declared_types(step)
    produced = job_state.items_for_step(step.id)

    undeclared = sorted(
        {e.type for e in produced["entities"]} - entity_types
        | {r.type for r in produced["relationships"]} - relationship_types
    )
    for _type in undeclared:
        log.warning("Step %s produced undeclared type %s", step.id, _type)
    return undeclared


def execute_integration(
    instance: IntegrationInstance,
    steps: Optional[Sequence[Step]] = None,
    start_states: Optional[StepStartStates] = None,
    job_state: Optional[JobState] = None,
    logger: Optional[logging.Logger] = None,
) -> ExecutionResult:
    if steps is None:
        from azgraph.steps import ALL_STEPS
        steps = ALL_STEPS
    log = logger or logging.getLogger("azgraph")
    job_state = job_state or JobState()
    start_states = start_states or {}

    results: Dict[str, StepResult] = {}
    for step in build_dependency_graph(steps):
        result = StepResult(
            id=step.id, name=step.name, status=StepStatus.SUCCESS, depends_on=list(step.depends_on)
        )
        results[step.id] = result

        state = start_states.get(step.id)
        if state is not None and state.disabled:
            result.status = StepStatus.DISABLED
            log.info("Step %s disabled", step.id)
            continue

        blocked = [d for d in step.depends_on if results[d].status != StepStatus.SUCCESS]
        if blocked:
            result.status = StepStatus.SKIPPED_DEPENDENCY_FAILURE
            log.info("Step %s skipped; dependencies did not succeed: %s", step.id, ", ".join(blocked))
            continue

        step_log = child_logger(log, step)
        context = StepExecutionContext(instance=instance, job_state=job_state, logger=step_log)
        job_state.current_step = step.id
        log.info("Step %s started", step.id)
        started = time.monotonic()
        try:
            step.execution_handler(context)
        except Exception as exc:
            result.status = StepStatus.FAILURE
            result.error = exc
            log.error("Step %s failed: %s", step.id, exc)
            step_log.debug("Step failure", exc_info=True)
        finally:
            job_state.current_step = None
            result.duration = time.monotonic() - started

        produced = job_state.items_for_step(step.id)
        result.entity_count = len(produced["entities"])
        result.relationship_count = len(produced["relationships"])
        validate_step_output(step, job_state, step_log)
        log.info(
            "Step %s finished: %s (%d entities, %d relationships)",
            step.id, result.status.value, result.entity_count, result.relationship_count,
        )

    ordered = [results[s.id] for s in steps if s.id in results]
    return ExecutionResult(steps=ordered, job_state=job_state)
