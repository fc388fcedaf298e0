"""
Step registry. ``ALL_STEPS`` is built once, in declaration order; the
runner orders by dependency and breaks ties by this order.
"""
from types import MappingProxyType
from typing import Mapping, Tuple

from azgraph.errors import StepDependencyError
from azgraph.models.step import Step
from azgraph.steps.active_directory import active_directory_steps
from azgraph.steps.advisor import advisor_steps
from azgraph.steps.event_grid import event_grid_steps
from azgraph.steps.key_vault import key_vault_steps
from azgraph.steps.management_groups import management_groups_steps
from azgraph.steps.network import network_steps
from azgraph.steps.resources import resources_steps

ALL_STEPS: Tuple[Step, ...] = (
    active_directory_steps
    + resources_steps
    + network_steps
    + key_vault_steps
    + event_grid_steps
    + advisor_steps
    + management_groups_steps
)

STEPS_BY_ID: Mapping[str, Step] = MappingProxyType({s.id: s for s in ALL_STEPS})


def get_step(step_id: str) -> Step:
    try:
        return STEPS_BY_ID[step_id]
    except KeyError:
        raise StepDependencyError(f"Unknown step: {step_id}", details={"step": step_id}) from None
