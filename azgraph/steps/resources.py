from typing import Any, Dict

from azgraph.clients.resources import ResourcesClient
from azgraph.constants import RESOURCE_GROUP_ENTITY, STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS
from azgraph.converters.resource_groups import create_resource_group_entity
from azgraph.models.step import Step, StepExecutionContext
from azgraph.steps.common import get_web_linker


def fetch_resource_groups(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = ResourcesClient(context.instance.config, context.logger)

    def on_group(data: Dict[str, Any]) -> None:
        job_state.add_entity(create_resource_group_entity(web_linker, data))

    client.iterate_resource_groups(on_group)


resources_steps = (
    Step(
        id=STEP_RM_RESOURCES_RESOURCE_GROUPS,
        name="Resource Groups",
        entities=(RESOURCE_GROUP_ENTITY,),
        relationships=(),
        depends_on=(STEP_AD_ACCOUNT,),
        execution_handler=fetch_resource_groups,
    ),
)
