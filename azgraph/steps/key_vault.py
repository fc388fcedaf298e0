from typing import Any, Dict

from azgraph.clients.key_vault import KeyVaultClient
from azgraph.clients.monitor import MonitorClient
from azgraph.constants import (
    ACCOUNT_HAS_KEY_VAULT,
    DIAGNOSTIC_LOG_SETTING_ENTITY,
    DIAGNOSTIC_LOG_SETTING_USES_STORAGE_ACCOUNT,
    KEY_VAULT_ENTITY,
    KEY_VAULT_HAS_DIAGNOSTIC_LOG_SETTING,
    RESOURCE_GROUP_ENTITY,
    STEP_AD_ACCOUNT,
    STEP_RM_KEYVAULT_VAULTS,
    STEP_RM_RESOURCES_RESOURCE_GROUPS,
    resource_group_has,
)
from azgraph.converters.key_vault import (
    create_diagnostic_log_setting_entities,
    create_diagnostic_setting_storage_relationship,
    create_key_vault_entity,
)
from azgraph.models.entity import Entity, RelationshipClass, create_direct_relationship
from azgraph.models.scope import ResourceGroupScope
from azgraph.models.step import Step, StepExecutionContext
from azgraph.provider import AzureWebLinker
from azgraph.state import JobState
from azgraph.steps.common import get_account_entity, get_web_linker, iterate_scopes
from azgraph.steps.linking import link_to_resource_group


def store_diagnostic_settings(
    job_state: JobState,
    client: MonitorClient,
    web_linker: AzureWebLinker,
    resource: Entity,
) -> None:
    """Diagnostic log settings of ``resource``, each linked from it."""

    def on_setting(setting: Dict[str, Any]) -> None:
        for log_setting in create_diagnostic_log_setting_entities(web_linker, setting):
            job_state.add_entity(log_setting)
            job_state.add_relationship(
                create_direct_relationship(
                    RelationshipClass.HAS, from_entity=resource, to_entity=log_setting
                )
            )
            if log_setting.get("storageAccountId"):
                job_state.add_relationship(
                    create_diagnostic_setting_storage_relationship(log_setting)
                )

    client.iterate_diagnostic_settings(resource.key, on_setting)


def fetch_key_vaults(context: StepExecutionContext) -> None:
    job_state = context.job_state
    account = get_account_entity(job_state)
    web_linker = get_web_linker(job_state)
    client = KeyVaultClient(context.instance.config, context.logger)
    monitor = MonitorClient(context.instance.config, context.logger)

    def on_resource_group(_: Entity, resource_group: ResourceGroupScope) -> None:
        def on_vault(data: Dict[str, Any]) -> None:
            vault = job_state.add_entity(create_key_vault_entity(web_linker, data))
            job_state.add_relationship(
                create_direct_relationship(
                    RelationshipClass.HAS, from_entity=account, to_entity=vault
                )
            )
            link_to_resource_group(job_state, vault, context.logger)
            store_diagnostic_settings(job_state, monitor, web_linker, vault)

        client.iterate_key_vaults(resource_group, on_vault)

    iterate_scopes(
        job_state, RESOURCE_GROUP_ENTITY.type, ResourceGroupScope, on_resource_group, context.logger
    )


key_vault_steps = (
    Step(
        id=STEP_RM_KEYVAULT_VAULTS,
        name="Key Vaults",
        entities=(KEY_VAULT_ENTITY, DIAGNOSTIC_LOG_SETTING_ENTITY),
        relationships=(
            ACCOUNT_HAS_KEY_VAULT,
            resource_group_has(KEY_VAULT_ENTITY),
            KEY_VAULT_HAS_DIAGNOSTIC_LOG_SETTING,
            DIAGNOSTIC_LOG_SETTING_USES_STORAGE_ACCOUNT,
        ),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_key_vaults,
    ),
)
