"""
Directory builders: the account (tenant), users, groups and service principals.
"""
from typing import Any, Dict, List, Optional

from azgraph.constants import (
    ACCOUNT_ENTITY,
    ACCOUNT_HAS_GROUP,
    GROUP_ENTITY,
    SERVICE_PRINCIPAL_ENTITY,
    USER_ENTITY,
)
from azgraph.models.entity import (
    Entity,
    Relationship,
    RelationshipClass,
    assign_tags,
    create_direct_relationship,
    create_integration_entity,
    set_raw_data,
)
from azgraph.models.step import IntegrationInstance
from azgraph.provider import generate_entity_key, get_time


def create_account_entity(instance: IntegrationInstance) -> Entity:
    return create_integration_entity(
        {},
        {
            "_class": ACCOUNT_ENTITY.classes,
            "_key": generate_entity_key(instance.id),
            "_type": ACCOUNT_ENTITY.type,
            "name": instance.name,
            "displayName": instance.name,
        },
    )


def create_account_entity_with_organization(
    instance: IntegrationInstance,
    organization: Dict[str, Any],
    security_defaults: Optional[Dict[str, Any]] = None,
) -> Entity:
    default_domain: Optional[str] = None
    verified_domains: List[str] = []
    for domain in organization.get("verifiedDomains") or []:
        if domain.get("isDefault"):
            default_domain = domain.get("name")
        verified_domains.append(domain.get("name"))

    entity = create_integration_entity(
        organization,
        {
            "_class": ACCOUNT_ENTITY.classes,
            "_key": generate_entity_key(instance.id),
            "_type": ACCOUNT_ENTITY.type,
            "name": organization.get("displayName"),
            "displayName": instance.name,
            "organizationName": organization.get("displayName"),
            "defaultDomain": default_domain,
            "verifiedDomains": verified_domains,
            "securityDefaultsEnabled": (security_defaults or {}).get("isEnabled"),
        },
    )

    if security_defaults:
        set_raw_data(entity, "identitySecurityDefaultsEnforcementPolicy", security_defaults)
    return entity


def create_group_entity(data: Dict[str, Any]) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": generate_entity_key(data.get("id")),
            "_class": GROUP_ENTITY.classes,
            "_type": GROUP_ENTITY.type,
            "name": data.get("displayName"),
            "deletedOn": get_time(data.get("deletedDateTime")),
            "createdOn": get_time(data.get("createdDateTime")),
            "email": data.get("mail"),
            "renewedOn": get_time(data.get("renewedDateTime")),
        },
    )


def _name_part(display_name: Optional[str], index: int) -> Optional[str]:
    parts = (display_name or "").split(" ")
    return parts[index] or None


def create_user_entity(
    data: Dict[str, Any],
    registration_details: Optional[Dict[str, Any]] = None,
) -> Entity:
    entity = create_integration_entity(
        data,
        {
            "_key": generate_entity_key(data.get("id")),
            "_class": USER_ENTITY.classes,
            "_type": USER_ENTITY.type,
            "name": data.get("displayName"),
            "active": data.get("accountEnabled"),
            "email": data.get("mail"),
            "firstName": data.get("givenName") or _name_part(data.get("displayName"), 0),
            "lastName": data.get("surname") or _name_part(data.get("displayName"), -1),
            "username": data.get("userPrincipalName"),
            "isMfaRegistered": (registration_details or {}).get("isMfaRegistered"),
            "accountEnabled": data.get("accountEnabled"),
        },
    )

    if registration_details:
        set_raw_data(entity, "registrationDetails", registration_details)
    return entity


def create_service_principal_entity(data: Dict[str, Any]) -> Entity:
    entity = create_integration_entity(
        data,
        {
            "_key": generate_entity_key(data.get("id")),
            "_class": SERVICE_PRINCIPAL_ENTITY.classes,
            "_type": SERVICE_PRINCIPAL_ENTITY.type,
            "function": ["service-account"],
            "userType": "service",
            "category": ["infrastructure"],
            "name": data.get("displayName"),
            "displayName": data.get("displayName"),
            "appDisplayName": data.get("appDisplayName"),
            "appId": data.get("appId"),
            "servicePrincipalType": data.get("servicePrincipalType"),
            "servicePrincipalNames": data.get("servicePrincipalNames"),
        },
    )
    # Graph returns service principal tags as a list of strings.
    tags = data.get("tags")
    if isinstance(tags, list):
        tags = {t: True for t in tags}
    assign_tags(entity, tags)
    return entity


def create_account_group_relationship(account: Entity, group: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.HAS,
        from_key=account.key,
        from_type=ACCOUNT_ENTITY.type,
        to_key=generate_entity_key(group.get("id")),
        to_type=GROUP_ENTITY.type,
        properties={"_type": ACCOUNT_HAS_GROUP.type},
    )


def create_account_user_relationship(account: Entity, user: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.HAS,
        from_key=account.key,
        from_type=ACCOUNT_ENTITY.type,
        to_key=generate_entity_key(user.get("id")),
        to_type=USER_ENTITY.type,
    )


def create_account_service_principal_relationship(account: Entity, service_principal: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.HAS, from_entity=account, to_entity=service_principal
    )
