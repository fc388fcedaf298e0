"""
Directory steps. The account step always runs and publishes the account
entity through job state data; every other step reads it from there.
"""
from typing import Any, Dict

from azgraph.clients.directory import DirectoryClient
from azgraph.constants import (
    ACCOUNT_ENTITY,
    ACCOUNT_ENTITY_TYPE,
    ACCOUNT_HAS_GROUP,
    ACCOUNT_HAS_SERVICE_PRINCIPAL,
    ACCOUNT_HAS_USER,
    GROUP_ENTITY,
    SERVICE_PRINCIPAL_ENTITY,
    STEP_AD_ACCOUNT,
    STEP_AD_GROUPS,
    STEP_AD_SERVICE_PRINCIPALS,
    STEP_AD_USERS,
    USER_ENTITY,
)
from azgraph.converters.directory import (
    create_account_entity,
    create_account_entity_with_organization,
    create_account_group_relationship,
    create_account_service_principal_relationship,
    create_account_user_relationship,
    create_group_entity,
    create_service_principal_entity,
    create_user_entity,
)
from azgraph.models.step import Step, StepExecutionContext
from azgraph.steps.common import get_account_entity


def fetch_account(context: StepExecutionContext) -> None:
    instance, job_state = context.instance, context.job_state

    if instance.config.skip_active_directory:
        account = create_account_entity(instance)
    else:
        client = DirectoryClient(instance.config, context.logger)
        organization = client.fetch_organization()
        if organization:
            account = create_account_entity_with_organization(
                instance, organization, client.fetch_identity_security_defaults_policy()
            )
        else:
            context.logger.warning("No organization returned; account created from instance")
            account = create_account_entity(instance)

    job_state.add_entity(account)
    job_state.set_data(ACCOUNT_ENTITY_TYPE, account)


def fetch_users(context: StepExecutionContext) -> None:
    job_state = context.job_state
    account = get_account_entity(job_state)
    client = DirectoryClient(context.instance.config, context.logger)

    registration: Dict[str, Dict[str, Any]] = {}

    def remember(details: Dict[str, Any]) -> None:
        if details.get("id"):
            registration[details["id"]] = details

    client.iterate_credential_user_registration_details(remember)

    def on_user(data: Dict[str, Any]) -> None:
        user = job_state.add_entity(create_user_entity(data, registration.get(data.get("id"))))
        job_state.add_relationship(create_account_user_relationship(account, user))

    client.iterate_users(on_user)


def fetch_groups(context: StepExecutionContext) -> None:
    job_state = context.job_state
    account = get_account_entity(job_state)
    client = DirectoryClient(context.instance.config, context.logger)

    def on_group(data: Dict[str, Any]) -> None:
        group = job_state.add_entity(create_group_entity(data))
        job_state.add_relationship(create_account_group_relationship(account, group))

    client.iterate_groups(on_group)


def fetch_service_principals(context: StepExecutionContext) -> None:
    job_state = context.job_state
    account = get_account_entity(job_state)
    client = DirectoryClient(context.instance.config, context.logger)

    def on_service_principal(data: Dict[str, Any]) -> None:
        sp = job_state.add_entity(create_service_principal_entity(data))
        job_state.add_relationship(create_account_service_principal_relationship(account, sp))

    client.iterate_service_principals(on_service_principal)


active_directory_steps = (
    Step(
        id=STEP_AD_ACCOUNT,
        name="Active Directory Info",
        entities=(ACCOUNT_ENTITY,),
        relationships=(),
        depends_on=(),
        execution_handler=fetch_account,
    ),
    Step(
        id=STEP_AD_USERS,
        name="Active Directory Users",
        entities=(USER_ENTITY,),
        relationships=(ACCOUNT_HAS_USER,),
        depends_on=(STEP_AD_ACCOUNT,),
        execution_handler=fetch_users,
    ),
    Step(
        id=STEP_AD_GROUPS,
        name="Active Directory Groups",
        entities=(GROUP_ENTITY,),
        relationships=(ACCOUNT_HAS_GROUP,),
        depends_on=(STEP_AD_ACCOUNT,),
        execution_handler=fetch_groups,
    ),
    Step(
        id=STEP_AD_SERVICE_PRINCIPALS,
        name="Active Directory Service Principals",
        entities=(SERVICE_PRINCIPAL_ENTITY,),
        relationships=(ACCOUNT_HAS_SERVICE_PRINCIPAL,),
        depends_on=(STEP_AD_ACCOUNT,),
        execution_handler=fetch_service_principals,
    ),
)
