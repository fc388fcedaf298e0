"""
Network builders: load balancers, interfaces, public IPs, virtual networks,
subnets and network security groups.
"""
from typing import Any, Dict, List, Optional

from azgraph.constants import (
    LOAD_BALANCER_ENTITY,
    NETWORK_INTERFACE_ENTITY,
    PUBLIC_IP_ADDRESS_ENTITY,
    SECURITY_GROUP_ENTITY,
    SUBNET_ENTITY,
    VIRTUAL_NETWORK_ENTITY,
)
from azgraph.models.entity import (
    Entity,
    Relationship,
    RelationshipClass,
    assign_tags,
    create_direct_relationship,
    create_integration_entity,
)
from azgraph.provider import AzureWebLinker, resource_group_name


def _get(data: Optional[Dict], *keys: str) -> Any:
    cur: Any = data
    for k in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(k)
    return cur


def _cidr_display_name(name: Optional[str], cidr: Optional[str]) -> Optional[str]:
    return f"{name} ({cidr})" if cidr else name


def public_ip_addresses(ip_configurations: Optional[List[Dict]]) -> List[str]:
    """``ipAddress`` of every configuration carrying a ``publicIPAddress``, in order."""
    return [
        c["publicIPAddress"].get("ipAddress")
        for c in ip_configurations or []
        if c.get("publicIPAddress")
    ]


def private_ip_addresses(ip_configurations: Optional[List[Dict]]) -> List[str]:
    return [c["privateIPAddress"] for c in ip_configurations or [] if c.get("privateIPAddress")]


def create_load_balancer_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    public_ip = public_ip_addresses(data.get("frontendIPConfigurations"))
    private_ip = private_ip_addresses(data.get("frontendIPConfigurations"))

    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": LOAD_BALANCER_ENTITY.type,
            "_class": LOAD_BALANCER_ENTITY.classes,
            "category": ["network"],
            "function": ["load-balancing"],
            "resourceGuid": data.get("resourceGuid"),
            "resourceGroup": resource_group_name(data.get("id")),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "region": data.get("location"),
            "publicIp": public_ip,
            "privateIp": private_ip,
            "public": len(public_ip) > 0,
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def create_network_interface_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    private_ips = private_ip_addresses(data.get("ipConfigurations"))

    entity = create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": NETWORK_INTERFACE_ENTITY.type,
            "_class": NETWORK_INTERFACE_ENTITY.classes,
            "resourceGuid": data.get("resourceGuid"),
            "resourceGroup": resource_group_name(data.get("id")),
            "displayName": data.get("name"),
            "virtualMachineId": _get(data, "virtualMachine", "id"),
            "type": data.get("type"),
            "region": data.get("location"),
            "publicIp": None,
            "publicIpAddress": None,
            "privateIp": private_ips,
            "privateIpAddress": private_ips,
            "macAddress": data.get("macAddress"),
            "securityGroupId": _get(data, "networkSecurityGroup", "id"),
            "ipForwarding": data.get("enableIPForwarding"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )
    assign_tags(entity, data.get("tags"))
    return entity


def create_public_ip_address_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": PUBLIC_IP_ADDRESS_ENTITY.type,
            "_class": PUBLIC_IP_ADDRESS_ENTITY.classes,
            "resourceGuid": data.get("resourceGuid"),
            "resourceGroup": resource_group_name(data.get("id")),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "region": data.get("location"),
            "publicIp": data.get("ipAddress"),
            "publicIpAddress": data.get("ipAddress"),
            "public": True,
            "webLink": web_linker.portal_resource_url(data.get("id")),
            "sku": _get(data, "sku", "name"),
        },
    )


def create_subnet_entity(web_linker: AzureWebLinker, vnet: Dict, data: Dict) -> Entity:
    cidr = data.get("addressPrefix")

    return create_integration_entity(
        data,
        {
            "_type": SUBNET_ENTITY.type,
            "_class": SUBNET_ENTITY.classes,
            "displayName": _cidr_display_name(data.get("name"), cidr),
            "webLink": web_linker.portal_resource_url(data.get("id")),
            "CIDR": cidr,
            "public": False,
            "internal": True,
            "region": vnet.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
            "environment": _get(vnet, "tags", "environment"),
        },
    )


def create_network_security_group_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    category: List[str] = []
    if data.get("subnets"):
        category.append("network")
    if data.get("networkInterfaces"):
        category.append("host")

    return create_integration_entity(
        data,
        {
            "_type": SECURITY_GROUP_ENTITY.type,
            "_class": SECURITY_GROUP_ENTITY.classes,
            "webLink": web_linker.portal_resource_url(data.get("id")),
            "region": data.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
            "category": category,
        },
        tag_properties=["environment"],
    )


def create_virtual_network_entity(web_linker: AzureWebLinker, data: Dict) -> Entity:
    prefixes = _get(data, "addressSpace", "addressPrefixes") or []
    cidr = prefixes[0] if prefixes else None

    return create_integration_entity(
        data,
        {
            "_type": VIRTUAL_NETWORK_ENTITY.type,
            "_class": VIRTUAL_NETWORK_ENTITY.classes,
            "displayName": _cidr_display_name(data.get("name"), cidr),
            "webLink": web_linker.portal_resource_url(data.get("id")),
            "CIDR": cidr,
            "public": False,
            "internal": True,
            "region": data.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
        },
        tag_properties=["environment"],
    )


# ------------------------------------------------------------ relationships
def create_virtual_network_subnet_relationship(vnet: Entity, subnet: Entity) -> Relationship:
    return create_direct_relationship(
        RelationshipClass.CONTAINS, from_entity=vnet, to_entity=subnet
    )


def create_security_group_target_relationship(security_group: Entity, target: Entity) -> Relationship:
    """Security group PROTECTS subnet / network interface."""
    return create_direct_relationship(
        RelationshipClass.PROTECTS, from_entity=security_group, to_entity=target
    )


def security_group_target_ids(data: Dict) -> List[str]:
    """Ids of the subnets then interfaces a security group is attached to."""
    targets = (data.get("subnets") or []) + (data.get("networkInterfaces") or [])
    return [t["id"] for t in targets if t.get("id")]
