"""
Network steps. Security groups run last so the subnets and interfaces
they protect are already stored; unknown targets are skipped.
"""
from typing import Any, Dict

from azgraph.clients.network import NetworkClient
from azgraph.constants import (
    LOAD_BALANCER_ENTITY,
    NETWORK_INTERFACE_ENTITY,
    PUBLIC_IP_ADDRESS_ENTITY,
    SECURITY_GROUP_ENTITY,
    SECURITY_GROUP_PROTECTS_NETWORK_INTERFACE,
    SECURITY_GROUP_PROTECTS_SUBNET,
    STEP_AD_ACCOUNT,
    STEP_RM_NETWORK_INTERFACES,
    STEP_RM_NETWORK_LOAD_BALANCERS,
    STEP_RM_NETWORK_PUBLIC_IP_ADDRESSES,
    STEP_RM_NETWORK_SECURITY_GROUPS,
    STEP_RM_NETWORK_VIRTUAL_NETWORKS,
    STEP_RM_RESOURCES_RESOURCE_GROUPS,
    SUBNET_ENTITY,
    VIRTUAL_NETWORK_CONTAINS_SUBNET,
    VIRTUAL_NETWORK_ENTITY,
    resource_group_has,
)
from azgraph.converters.network import (
    create_load_balancer_entity,
    create_network_interface_entity,
    create_network_security_group_entity,
    create_public_ip_address_entity,
    create_security_group_target_relationship,
    create_subnet_entity,
    create_virtual_network_entity,
    create_virtual_network_subnet_relationship,
    security_group_target_ids,
)
from azgraph.models.step import Step, StepExecutionContext
from azgraph.steps.common import get_web_linker
from azgraph.steps.linking import TargetNotFound, link_to_existing, link_to_resource_group


def _client(context: StepExecutionContext) -> NetworkClient:
    return NetworkClient(context.instance.config, context.logger)


def fetch_virtual_networks(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)

    def on_vnet(data: Dict[str, Any]) -> None:
        vnet = job_state.add_entity(create_virtual_network_entity(web_linker, data))
        link_to_resource_group(job_state, vnet, context.logger)
        for subnet_data in data.get("subnets") or []:
            subnet = job_state.add_entity(create_subnet_entity(web_linker, data, subnet_data))
            job_state.add_relationship(create_virtual_network_subnet_relationship(vnet, subnet))

    _client(context).iterate_virtual_networks(on_vnet)


def fetch_network_security_groups(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)

    def on_group(data: Dict[str, Any]) -> None:
        group = job_state.add_entity(create_network_security_group_entity(web_linker, data))
        link_to_resource_group(job_state, group, context.logger)
        for target_id in security_group_target_ids(data):
            result = link_to_existing(
                job_state,
                target_id,
                lambda target: create_security_group_target_relationship(group, target),
            )
            if isinstance(result, TargetNotFound):
                context.logger.debug(
                    "Security group %s protects unknown resource %s", group.key, result.key
                )

    _client(context).iterate_network_security_groups(on_group)


def fetch_network_interfaces(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)

    def on_interface(data: Dict[str, Any]) -> None:
        nic = job_state.add_entity(create_network_interface_entity(web_linker, data))
        link_to_resource_group(job_state, nic, context.logger)

    _client(context).iterate_network_interfaces(on_interface)


def fetch_public_ip_addresses(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)

    def on_address(data: Dict[str, Any]) -> None:
        ip = job_state.add_entity(create_public_ip_address_entity(web_linker, data))
        link_to_resource_group(job_state, ip, context.logger)

    _client(context).iterate_public_ip_addresses(on_address)


def fetch_load_balancers(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)

    def on_load_balancer(data: Dict[str, Any]) -> None:
        lb = job_state.add_entity(create_load_balancer_entity(web_linker, data))
        link_to_resource_group(job_state, lb, context.logger)

    _client(context).iterate_load_balancers(on_load_balancer)


network_steps = (
    Step(
        id=STEP_RM_NETWORK_VIRTUAL_NETWORKS,
        name="Virtual Networks",
        entities=(VIRTUAL_NETWORK_ENTITY, SUBNET_ENTITY),
        relationships=(
            resource_group_has(VIRTUAL_NETWORK_ENTITY),
            VIRTUAL_NETWORK_CONTAINS_SUBNET,
        ),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_virtual_networks,
    ),
    Step(
        id=STEP_RM_NETWORK_INTERFACES,
        name="Network Interfaces",
        entities=(NETWORK_INTERFACE_ENTITY,),
        relationships=(resource_group_has(NETWORK_INTERFACE_ENTITY),),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_network_interfaces,
    ),
    Step(
        id=STEP_RM_NETWORK_SECURITY_GROUPS,
        name="Network Security Groups",
        entities=(SECURITY_GROUP_ENTITY,),
        relationships=(
            resource_group_has(SECURITY_GROUP_ENTITY),
            SECURITY_GROUP_PROTECTS_SUBNET,
            SECURITY_GROUP_PROTECTS_NETWORK_INTERFACE,
        ),
        depends_on=(
            STEP_AD_ACCOUNT,
            STEP_RM_RESOURCES_RESOURCE_GROUPS,
            STEP_RM_NETWORK_VIRTUAL_NETWORKS,
            STEP_RM_NETWORK_INTERFACES,
        ),
        execution_handler=fetch_network_security_groups,
    ),
    Step(
        id=STEP_RM_NETWORK_PUBLIC_IP_ADDRESSES,
        name="Public IP Addresses",
        entities=(PUBLIC_IP_ADDRESS_ENTITY,),
        relationships=(resource_group_has(PUBLIC_IP_ADDRESS_ENTITY),),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_public_ip_addresses,
    ),
    Step(
        id=STEP_RM_NETWORK_LOAD_BALANCERS,
        name="Load Balancers",
        entities=(LOAD_BALANCER_ENTITY,),
        relationships=(resource_group_has(LOAD_BALANCER_ENTITY),),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_load_balancers,
    ),
)
