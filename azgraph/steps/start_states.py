from typing import Iterable, Optional

from azgraph.config import IntegrationConfig
from azgraph.constants import STEP_AD_ACCOUNT
from azgraph.models.step import Step, StepStartState, StepStartStates


def get_step_start_states(
    config: IntegrationConfig, steps: Optional[Iterable[Step]] = None
) -> StepStartStates:
    """
    Which steps run for ``config``.

    The account step always runs. Directory steps are switched off by
    ``skip_active_directory``; resource manager steps need a subscription.
    """
    if steps is None:
        from azgraph.steps import ALL_STEPS
        steps = ALL_STEPS

    states: StepStartStates = {}
    for step in steps:
        if step.id == STEP_AD_ACCOUNT:
            disabled = False
        elif step.id.startswith("ad-"):
            disabled = bool(config.skip_active_directory)
        else:
            disabled = not config.subscription_id
        states[step.id] = StepStartState(disabled=disabled)
    return states
