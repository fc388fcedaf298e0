"""
Key vault builders, plus the diagnostic log settings attached to a vault.
"""
from typing import Any, Dict, List

from azgraph.constants import (
    DIAGNOSTIC_LOG_SETTING_ENTITY,
    KEY_VAULT_ENTITY,
    STORAGE_ACCOUNT_TYPE,
)
from azgraph.models.entity import (
    Entity,
    Relationship,
    RelationshipClass,
    create_direct_relationship,
    create_integration_entity,
)
from azgraph.provider import AzureWebLinker, resource_group_name


def create_key_vault_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    props = data.get("properties") or {}
    vault_uri = props.get("vaultUri")

    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": KEY_VAULT_ENTITY.type,
            "_class": KEY_VAULT_ENTITY.classes,
            "category": ["infrastructure"],
            "displayName": data.get("name"),
            "region": data.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
            "endpoints": [vault_uri] if vault_uri else None,
            "skuName": (props.get("sku") or {}).get("name"),
            "tenantId": props.get("tenantId"),
            "enabledForDeployment": props.get("enabledForDeployment"),
            "enabledForDiskEncryption": props.get("enabledForDiskEncryption"),
            "enabledForTemplateDeployment": props.get("enabledForTemplateDeployment"),
            "enableSoftDelete": props.get("enableSoftDelete"),
            "enablePurgeProtection": props.get("enablePurgeProtection"),
            "enableRbacAuthorization": props.get("enableRbacAuthorization"),
            "publicNetworkAccess": props.get("publicNetworkAccess"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def _key_part(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "none" if value is None else str(value)


def create_diagnostic_log_setting_entities(
    web_linker: AzureWebLinker, setting: Dict[str, Any]
) -> List[Entity]:
    """One entity per log category of a diagnostic setting."""
    entities = []
    for log in setting.get("logs") or []:
        retention = log.get("retentionPolicy") or {}
        key = "/".join(
            [
                setting["id"],
                "logs",
                _key_part(log.get("category")),
                _key_part(log.get("enabled")),
                _key_part(retention.get("days")),
                _key_part(retention.get("enabled")),
            ]
        )
        entities.append(
            create_integration_entity(
                setting,
                {
                    "_key": key,
                    "_type": DIAGNOSTIC_LOG_SETTING_ENTITY.type,
                    "_class": DIAGNOSTIC_LOG_SETTING_ENTITY.classes,
                    "id": key,
                    "name": setting.get("name"),
                    "displayName": setting.get("name"),
                    "category": log.get("category"),
                    "enabled": log.get("enabled"),
                    "retentionPolicy.days": retention.get("days"),
                    "retentionPolicy.enabled": retention.get("enabled"),
                    "storageAccountId": setting.get("storageAccountId"),
                    "eventHubAuthorizationRuleId": setting.get("eventHubAuthorizationRuleId"),
                    "eventHubName": setting.get("eventHubName"),
                    "logAnalyticsDestinationType": setting.get("logAnalyticsDestinationType"),
                    "serviceBusRuleId": setting.get("serviceBusRuleId"),
                    "workspaceId": setting.get("workspaceId"),
                    "webLink": web_linker.portal_resource_url(setting["id"]),
                },
            )
        )
    return entities


def create_diagnostic_setting_storage_relationship(log_setting: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.USES,
        from_entity=log_setting,
        to_key=log_setting["storageAccountId"],
        to_type=STORAGE_ACCOUNT_TYPE,
    )
