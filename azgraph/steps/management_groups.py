from typing import Any, Dict

from azgraph.clients.management_groups import ManagementGroupClient
from azgraph.constants import (
    ACCOUNT_HAS_ROOT_MANAGEMENT_GROUP,
    MANAGEMENT_GROUP_CONTAINS_MANAGEMENT_GROUP,
    MANAGEMENT_GROUP_ENTITY,
    STEP_AD_ACCOUNT,
    STEP_RM_MANAGEMENT_GROUPS,
)
from azgraph.converters.management_groups import (
    create_management_group_entity,
    management_group_children,
)
from azgraph.models.entity import Entity, RelationshipClass, create_direct_relationship
from azgraph.models.step import Step, StepExecutionContext
from azgraph.provider import AzureWebLinker
from azgraph.state import JobState
from azgraph.steps.common import get_account_entity, get_web_linker


def _store_children(
    job_state: JobState, web_linker: AzureWebLinker, parent: Entity, data: Dict[str, Any]
) -> None:
    for child_data in management_group_children(data):
        child = job_state.add_entity(create_management_group_entity(web_linker, child_data))
        job_state.add_relationship(
            create_direct_relationship(RelationshipClass.CONTAINS, from_entity=parent, to_entity=child)
        )
        _store_children(job_state, web_linker, child, child_data)


def fetch_management_groups(context: StepExecutionContext) -> None:
    """The tenant root group shares the directory id; walk its subtree."""
    job_state = context.job_state
    account = get_account_entity(job_state)
    web_linker = get_web_linker(job_state)
    client = ManagementGroupClient(context.instance.config, context.logger)

    root_data = client.fetch_management_group(context.instance.config.directory_id)
    if not root_data:
        context.logger.info("No root management group returned")
        return

    root = job_state.add_entity(create_management_group_entity(web_linker, root_data))
    job_state.add_relationship(
        create_direct_relationship(RelationshipClass.HAS, from_entity=account, to_entity=root)
    )
    _store_children(job_state, web_linker, root, root_data)


management_groups_steps = (
    Step(
        id=STEP_RM_MANAGEMENT_GROUPS,
        name="Management Groups",
        entities=(MANAGEMENT_GROUP_ENTITY,),
        relationships=(
            ACCOUNT_HAS_ROOT_MANAGEMENT_GROUP,
            MANAGEMENT_GROUP_CONTAINS_MANAGEMENT_GROUP,
        ),
        depends_on=(STEP_AD_ACCOUNT,),
        execution_handler=fetch_management_groups,
    ),
)
