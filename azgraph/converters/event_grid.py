"""
Event Grid builders. Domains and topics are resource-group scoped; domain
topics hang off a domain; subscriptions hang off a topic or domain topic.
"""
from typing import Any, Dict, Optional

from azgraph.constants import (
    EVENT_GRID_DOMAIN_ENTITY,
    EVENT_GRID_DOMAIN_TOPIC_ENTITY,
    EVENT_GRID_TOPIC_ENTITY,
    EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY,
)
from azgraph.models.entity import Entity, create_integration_entity
from azgraph.provider import AzureWebLinker, get_time, resource_group_name


def _sub(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    return data.get(name) or {}


def create_event_grid_domain_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": EVENT_GRID_DOMAIN_ENTITY.type,
            "_class": EVENT_GRID_DOMAIN_ENTITY.classes,
            "id": data.get("id"),
            "name": data.get("name"),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "region": data.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
            "endpoint": data.get("endpoint"),
            "provisioningState": data.get("provisioningState"),
            "inputSchema": data.get("inputSchema"),
            "metricResourceId": data.get("metricResourceId"),
            "publicNetworkAccess": data.get("publicNetworkAccess"),
            "category": ["infrastructure"],
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def create_event_grid_domain_topic_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": EVENT_GRID_DOMAIN_TOPIC_ENTITY.type,
            "_class": EVENT_GRID_DOMAIN_TOPIC_ENTITY.classes,
            "id": data.get("id"),
            "name": data.get("name"),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "resourceGroup": resource_group_name(data.get("id")),
            "provisioningState": data.get("provisioningState"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def create_event_grid_topic_entity(web_linker: AzureWebLinker, data: Dict[str, Any]) -> Entity:
    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": EVENT_GRID_TOPIC_ENTITY.type,
            "_class": EVENT_GRID_TOPIC_ENTITY.classes,
            "id": data.get("id"),
            "name": data.get("name"),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "region": data.get("location"),
            "resourceGroup": resource_group_name(data.get("id")),
            "endpoint": data.get("endpoint"),
            "provisioningState": data.get("provisioningState"),
            "inputSchema": data.get("inputSchema"),
            "metricResourceId": data.get("metricResourceId"),
            "publicNetworkAccess": data.get("publicNetworkAccess"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )


def _destination_endpoint(destination: Dict[str, Any]) -> Optional[str]:
    # Webhooks expose a base URL; every other destination is an Azure resource.
    return destination.get("endpointBaseUrl") or destination.get("resourceId")


def create_event_grid_topic_subscription_entity(
    web_linker: AzureWebLinker, data: Dict[str, Any]
) -> Entity:
    destination = _sub(data, "destination")
    filter_ = _sub(data, "filter")
    retry = _sub(data, "retryPolicy")

    return create_integration_entity(
        data,
        {
            "_key": data.get("id"),
            "_type": EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY.type,
            "_class": EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY.classes,
            "id": data.get("id"),
            "name": data.get("name"),
            "displayName": data.get("name"),
            "type": data.get("type"),
            "topic": data.get("topic"),
            "provisioningState": data.get("provisioningState"),
            "destinationType": destination.get("endpointType"),
            "destinationEndpoint": _destination_endpoint(destination),
            "eventDeliverySchema": data.get("eventDeliverySchema"),
            "expirationTime": get_time(data.get("expirationTimeUtc")),
            "filter.subjectBeginsWith": filter_.get("subjectBeginsWith"),
            "filter.subjectEndsWith": filter_.get("subjectEndsWith"),
            "filter.includedEventTypes": filter_.get("includedEventTypes"),
            "filter.isSubjectCaseSensitive": filter_.get("isSubjectCaseSensitive"),
            "retryPolicy.maxDeliveryAttempts": retry.get("maxDeliveryAttempts"),
            "retryPolicy.eventTimeToLiveInMinutes": retry.get("eventTimeToLiveInMinutes"),
            "webLink": web_linker.portal_resource_url(data.get("id")),
        },
    )
