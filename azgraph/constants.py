"""
Step ids and the entity / relationship shapes each step may produce.

Everything here is built once at import time and never mutated:
schemas are frozen dataclasses, registries are read-only mappings.
"""
from types import MappingProxyType
from typing import Mapping

from azgraph.models.entity import EntitySchema, RelationshipClass, RelationshipSchema

# ------------------------------------------------------------------ step ids
STEP_AD_ACCOUNT = "ad-account"
STEP_AD_USERS = "ad-users"
STEP_AD_GROUPS = "ad-groups"
STEP_AD_SERVICE_PRINCIPALS = "ad-service-principals"

STEP_RM_RESOURCES_RESOURCE_GROUPS = "rm-resources-resource-groups"

STEP_RM_NETWORK_VIRTUAL_NETWORKS = "rm-network-virtual-networks"
STEP_RM_NETWORK_SECURITY_GROUPS = "rm-network-security-groups"
STEP_RM_NETWORK_INTERFACES = "rm-network-interfaces"
STEP_RM_NETWORK_PUBLIC_IP_ADDRESSES = "rm-network-public-ip-addresses"
STEP_RM_NETWORK_LOAD_BALANCERS = "rm-network-load-balancers"

STEP_RM_KEYVAULT_VAULTS = "rm-keyvault-vaults"

STEP_RM_EVENT_GRID_DOMAINS = "rm-event-grid-domains"
STEP_RM_EVENT_GRID_DOMAIN_TOPICS = "rm-event-grid-domain-topics"
STEP_RM_EVENT_GRID_DOMAIN_TOPIC_SUBSCRIPTIONS = "rm-event-grid-domain-topic-subscriptions"
STEP_RM_EVENT_GRID_TOPICS = "rm-event-grid-topics"
STEP_RM_EVENT_GRID_TOPIC_SUBSCRIPTIONS = "rm-event-grid-topic-subscriptions"

STEP_RM_ADVISOR_RECOMMENDATIONS = "rm-advisor-recommendations"

STEP_RM_MANAGEMENT_GROUPS = "rm-management-groups"

# ------------------------------------------------------- active directory
ACCOUNT_ENTITY = EntitySchema("azure_account", ("Account",), "[AD] Account")
USER_ENTITY = EntitySchema("azure_user", ("User",), "[AD] User")
GROUP_ENTITY = EntitySchema("azure_user_group", ("UserGroup",), "[AD] Group")
SERVICE_PRINCIPAL_ENTITY = EntitySchema(
    "azure_service_principal", ("Service",), "[AD] Service Principal"
)

# Key under which the account entity is shared through job state data.
ACCOUNT_ENTITY_TYPE = ACCOUNT_ENTITY.type

ACCOUNT_HAS_USER = RelationshipSchema.between(
    RelationshipClass.HAS, ACCOUNT_ENTITY.type, USER_ENTITY.type
)
ACCOUNT_HAS_GROUP = RelationshipSchema.between(
    RelationshipClass.HAS, ACCOUNT_ENTITY.type, GROUP_ENTITY.type,
    type="azure_account_has_group",
)
ACCOUNT_HAS_SERVICE_PRINCIPAL = RelationshipSchema.between(
    RelationshipClass.HAS, ACCOUNT_ENTITY.type, SERVICE_PRINCIPAL_ENTITY.type
)

# --------------------------------------------------------- resource groups
RESOURCE_GROUP_ENTITY = EntitySchema(
    "azure_resource_group", ("Group",), "[RM] Resource Group"
)


def resource_group_has(target: EntitySchema) -> RelationshipSchema:
    return RelationshipSchema.between(
        RelationshipClass.HAS, RESOURCE_GROUP_ENTITY.type, target.type
    )


# ----------------------------------------------------------------- network
VIRTUAL_NETWORK_ENTITY = EntitySchema("azure_vnet", ("Network",), "[RM] Virtual Network")
SUBNET_ENTITY = EntitySchema("azure_subnet", ("Network",), "[RM] Subnet")
SECURITY_GROUP_ENTITY = EntitySchema(
    "azure_security_group", ("Firewall",), "[RM] Network Security Group"
)
NETWORK_INTERFACE_ENTITY = EntitySchema(
    "azure_nic", ("NetworkInterface",), "[RM] Network Interface"
)
PUBLIC_IP_ADDRESS_ENTITY = EntitySchema(
    "azure_public_ip", ("IpAddress",), "[RM] Public IP Address"
)
LOAD_BALANCER_ENTITY = EntitySchema("azure_lb", ("Gateway",), "[RM] Load Balancer")

VIRTUAL_NETWORK_CONTAINS_SUBNET = RelationshipSchema.between(
    RelationshipClass.CONTAINS, VIRTUAL_NETWORK_ENTITY.type, SUBNET_ENTITY.type
)
SECURITY_GROUP_PROTECTS_SUBNET = RelationshipSchema.between(
    RelationshipClass.PROTECTS, SECURITY_GROUP_ENTITY.type, SUBNET_ENTITY.type
)
SECURITY_GROUP_PROTECTS_NETWORK_INTERFACE = RelationshipSchema.between(
    RelationshipClass.PROTECTS, SECURITY_GROUP_ENTITY.type, NETWORK_INTERFACE_ENTITY.type
)

# --------------------------------------------------------------- key vault
KEY_VAULT_ENTITY = EntitySchema(
    "azure_keyvault_service", ("Service",), "[RM] Key Vault"
)
DIAGNOSTIC_LOG_SETTING_ENTITY = EntitySchema(
    "azure_diagnostic_log_setting", ("Configuration",), "[RM] Diagnostic Log Setting"
)
# Only ever a relationship target here; storage accounts are not ingested.
STORAGE_ACCOUNT_TYPE = "azure_storage_account"

ACCOUNT_HAS_KEY_VAULT = RelationshipSchema.between(
    RelationshipClass.HAS, ACCOUNT_ENTITY.type, KEY_VAULT_ENTITY.type
)
KEY_VAULT_HAS_DIAGNOSTIC_LOG_SETTING = RelationshipSchema.between(
    RelationshipClass.HAS, KEY_VAULT_ENTITY.type, DIAGNOSTIC_LOG_SETTING_ENTITY.type
)
DIAGNOSTIC_LOG_SETTING_USES_STORAGE_ACCOUNT = RelationshipSchema.between(
    RelationshipClass.USES, DIAGNOSTIC_LOG_SETTING_ENTITY.type, STORAGE_ACCOUNT_TYPE
)

# -------------------------------------------------------------- event grid
EVENT_GRID_DOMAIN_ENTITY = EntitySchema(
    "azure_event_grid_domain", ("Service",), "[RM] Event Grid Domain"
)
EVENT_GRID_DOMAIN_TOPIC_ENTITY = EntitySchema(
    "azure_event_grid_domain_topic", ("Queue",), "[RM] Event Grid Domain Topic"
)
EVENT_GRID_TOPIC_ENTITY = EntitySchema(
    "azure_event_grid_topic", ("Queue",), "[RM] Event Grid Topic"
)
EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY = EntitySchema(
    "azure_event_grid_topic_subscription", ("Subscription",),
    "[RM] Event Grid Topic Subscription",
)

EVENT_GRID_DOMAIN_HAS_DOMAIN_TOPIC = RelationshipSchema.between(
    RelationshipClass.HAS, EVENT_GRID_DOMAIN_ENTITY.type, EVENT_GRID_DOMAIN_TOPIC_ENTITY.type
)
EVENT_GRID_DOMAIN_TOPIC_HAS_SUBSCRIPTION = RelationshipSchema.between(
    RelationshipClass.HAS,
    EVENT_GRID_DOMAIN_TOPIC_ENTITY.type,
    EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY.type,
)
EVENT_GRID_TOPIC_HAS_SUBSCRIPTION = RelationshipSchema.between(
    RelationshipClass.HAS, EVENT_GRID_TOPIC_ENTITY.type, EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY.type
)

# ----------------------------------------------------------------- advisor
RECOMMENDATION_ENTITY = EntitySchema(
    "azure_advisor_recommendation", ("Finding",), "[RM] Advisor Recommendation"
)
SECURITY_ASSESSMENT_TYPE = "azure_security_assessment"
ANY_RESOURCE_TYPE = "azure_resource"

ASSESSMENT_IDENTIFIED_FINDING = RelationshipSchema.between(
    RelationshipClass.IDENTIFIED, SECURITY_ASSESSMENT_TYPE, RECOMMENDATION_ENTITY.type
)
ANY_RESOURCE_HAS_FINDING = RelationshipSchema.between(
    RelationshipClass.HAS, ANY_RESOURCE_TYPE, RECOMMENDATION_ENTITY.type
)

# ------------------------------------------------------- management groups
MANAGEMENT_GROUP_ENTITY = EntitySchema(
    "azure_management_group", ("Group",), "[RM] Management Group"
)
ACCOUNT_HAS_ROOT_MANAGEMENT_GROUP = RelationshipSchema.between(
    RelationshipClass.HAS, ACCOUNT_ENTITY.type, MANAGEMENT_GROUP_ENTITY.type
)
MANAGEMENT_GROUP_CONTAINS_MANAGEMENT_GROUP = RelationshipSchema.between(
    RelationshipClass.CONTAINS, MANAGEMENT_GROUP_ENTITY.type, MANAGEMENT_GROUP_ENTITY.type
)

# ---------------------------------------------------------------- registry
ENTITY_SCHEMAS: Mapping[str, EntitySchema] = MappingProxyType({
    s.type: s
    for s in (
        ACCOUNT_ENTITY, USER_ENTITY, GROUP_ENTITY, SERVICE_PRINCIPAL_ENTITY,
        RESOURCE_GROUP_ENTITY,
        VIRTUAL_NETWORK_ENTITY, SUBNET_ENTITY, SECURITY_GROUP_ENTITY,
        NETWORK_INTERFACE_ENTITY, PUBLIC_IP_ADDRESS_ENTITY, LOAD_BALANCER_ENTITY,
        KEY_VAULT_ENTITY, DIAGNOSTIC_LOG_SETTING_ENTITY,
        EVENT_GRID_DOMAIN_ENTITY, EVENT_GRID_DOMAIN_TOPIC_ENTITY,
        EVENT_GRID_TOPIC_ENTITY, EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY,
        RECOMMENDATION_ENTITY,
        MANAGEMENT_GROUP_ENTITY,
    )
})

# Resource manager steps that must finish before cross-resource linking
# (advisor findings look up any previously ingested resource).
EXECUTE_FIRST_STEPS = (
    STEP_RM_RESOURCES_RESOURCE_GROUPS,
    STEP_RM_NETWORK_VIRTUAL_NETWORKS,
    STEP_RM_NETWORK_SECURITY_GROUPS,
    STEP_RM_NETWORK_INTERFACES,
    STEP_RM_NETWORK_PUBLIC_IP_ADDRESSES,
    STEP_RM_NETWORK_LOAD_BALANCERS,
    STEP_RM_KEYVAULT_VAULTS,
    STEP_RM_EVENT_GRID_DOMAINS,
    STEP_RM_EVENT_GRID_DOMAIN_TOPICS,
    STEP_RM_EVENT_GRID_DOMAIN_TOPIC_SUBSCRIPTIONS,
    STEP_RM_EVENT_GRID_TOPICS,
    STEP_RM_EVENT_GRID_TOPIC_SUBSCRIPTIONS,
)
