"""
Event Grid steps, parent before child:

    resource group -> domain -> domain topic -> subscription
    resource group -> topic -> subscription
"""
from typing import Any, Dict

from azgraph.clients.event_grid import EventGridClient
from azgraph.constants import (
    EVENT_GRID_DOMAIN_ENTITY,
    EVENT_GRID_DOMAIN_HAS_DOMAIN_TOPIC,
    EVENT_GRID_DOMAIN_TOPIC_ENTITY,
    EVENT_GRID_DOMAIN_TOPIC_HAS_SUBSCRIPTION,
    EVENT_GRID_TOPIC_ENTITY,
    EVENT_GRID_TOPIC_HAS_SUBSCRIPTION,
    EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY,
    RESOURCE_GROUP_ENTITY,
    STEP_AD_ACCOUNT,
    STEP_RM_EVENT_GRID_DOMAIN_TOPIC_SUBSCRIPTIONS,
    STEP_RM_EVENT_GRID_DOMAIN_TOPICS,
    STEP_RM_EVENT_GRID_DOMAINS,
    STEP_RM_EVENT_GRID_TOPIC_SUBSCRIPTIONS,
    STEP_RM_EVENT_GRID_TOPICS,
    STEP_RM_RESOURCES_RESOURCE_GROUPS,
    resource_group_has,
)
from azgraph.converters.event_grid import (
    create_event_grid_domain_entity,
    create_event_grid_domain_topic_entity,
    create_event_grid_topic_entity,
    create_event_grid_topic_subscription_entity,
)
from azgraph.models.entity import Entity, RelationshipClass, create_direct_relationship
from azgraph.models.scope import DomainScope, DomainTopicScope, ResourceGroupScope, TopicScope
from azgraph.models.step import Step, StepExecutionContext
from azgraph.steps.common import get_web_linker, iterate_scopes
from azgraph.steps.linking import link_to_resource_group


def _client(context: StepExecutionContext) -> EventGridClient:
    return EventGridClient(context.instance.config, context.logger)


def fetch_event_grid_domains(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = _client(context)

    def on_resource_group(_: Entity, resource_group: ResourceGroupScope) -> None:
        def on_domain(data: Dict[str, Any]) -> None:
            domain = job_state.add_entity(create_event_grid_domain_entity(web_linker, data))
            link_to_resource_group(job_state, domain, context.logger)

        client.iterate_domains(resource_group, on_domain)

    iterate_scopes(
        job_state, RESOURCE_GROUP_ENTITY.type, ResourceGroupScope, on_resource_group, context.logger
    )


def fetch_event_grid_domain_topics(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = _client(context)

    def on_domain(domain: Entity, scope: DomainScope) -> None:
        def on_topic(data: Dict[str, Any]) -> None:
            topic = job_state.add_entity(create_event_grid_domain_topic_entity(web_linker, data))
            job_state.add_relationship(
                create_direct_relationship(RelationshipClass.HAS, from_entity=domain, to_entity=topic)
            )

        client.iterate_domain_topics(scope, on_topic)

    iterate_scopes(job_state, EVENT_GRID_DOMAIN_ENTITY.type, DomainScope, on_domain, context.logger)


def fetch_event_grid_domain_topic_subscriptions(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = _client(context)

    def on_domain_topic(domain_topic: Entity, scope: DomainTopicScope) -> None:
        def on_subscription(data: Dict[str, Any]) -> None:
            subscription = job_state.add_entity(
                create_event_grid_topic_subscription_entity(web_linker, data)
            )
            job_state.add_relationship(
                create_direct_relationship(
                    RelationshipClass.HAS, from_entity=domain_topic, to_entity=subscription
                )
            )

        client.iterate_domain_topic_subscriptions(scope, on_subscription)

    iterate_scopes(
        job_state,
        EVENT_GRID_DOMAIN_TOPIC_ENTITY.type,
        DomainTopicScope,
        on_domain_topic,
        context.logger,
    )


def fetch_event_grid_topics(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = _client(context)

    def on_resource_group(_: Entity, resource_group: ResourceGroupScope) -> None:
        def on_topic(data: Dict[str, Any]) -> None:
            topic = job_state.add_entity(create_event_grid_topic_entity(web_linker, data))
            link_to_resource_group(job_state, topic, context.logger)

        client.iterate_topics(resource_group, on_topic)

    iterate_scopes(
        job_state, RESOURCE_GROUP_ENTITY.type, ResourceGroupScope, on_resource_group, context.logger
    )


def fetch_event_grid_topic_subscriptions(context: StepExecutionContext) -> None:
    job_state = context.job_state
    web_linker = get_web_linker(job_state)
    client = _client(context)

    def on_topic(topic: Entity, scope: TopicScope) -> None:
        def on_subscription(data: Dict[str, Any]) -> None:
            subscription = job_state.add_entity(
                create_event_grid_topic_subscription_entity(web_linker, data)
            )
            job_state.add_relationship(
                create_direct_relationship(
                    RelationshipClass.HAS, from_entity=topic, to_entity=subscription
                )
            )

        client.iterate_topic_subscriptions(scope, on_subscription)

    iterate_scopes(job_state, EVENT_GRID_TOPIC_ENTITY.type, TopicScope, on_topic, context.logger)


event_grid_steps = (
    Step(
        id=STEP_RM_EVENT_GRID_DOMAINS,
        name="Event Grid Domains",
        entities=(EVENT_GRID_DOMAIN_ENTITY,),
        relationships=(resource_group_has(EVENT_GRID_DOMAIN_ENTITY),),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_event_grid_domains,
    ),
    Step(
        id=STEP_RM_EVENT_GRID_DOMAIN_TOPICS,
        name="Event Grid Domain Topics",
        entities=(EVENT_GRID_DOMAIN_TOPIC_ENTITY,),
        relationships=(EVENT_GRID_DOMAIN_HAS_DOMAIN_TOPIC,),
        depends_on=(
            STEP_AD_ACCOUNT,
            STEP_RM_RESOURCES_RESOURCE_GROUPS,
            STEP_RM_EVENT_GRID_DOMAINS,
        ),
        execution_handler=fetch_event_grid_domain_topics,
    ),
    Step(
        id=STEP_RM_EVENT_GRID_DOMAIN_TOPIC_SUBSCRIPTIONS,
        name="Event Grid Domain Topic Subscriptions",
        entities=(EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY,),
        relationships=(EVENT_GRID_DOMAIN_TOPIC_HAS_SUBSCRIPTION,),
        depends_on=(
            STEP_AD_ACCOUNT,
            STEP_RM_RESOURCES_RESOURCE_GROUPS,
            STEP_RM_EVENT_GRID_DOMAINS,
            STEP_RM_EVENT_GRID_DOMAIN_TOPICS,
        ),
        execution_handler=fetch_event_grid_domain_topic_subscriptions,
    ),
    Step(
        id=STEP_RM_EVENT_GRID_TOPICS,
        name="Event Grid Topics",
        entities=(EVENT_GRID_TOPIC_ENTITY,),
        relationships=(resource_group_has(EVENT_GRID_TOPIC_ENTITY),),
        depends_on=(STEP_AD_ACCOUNT, STEP_RM_RESOURCES_RESOURCE_GROUPS),
        execution_handler=fetch_event_grid_topics,
    ),
    Step(
        id=STEP_RM_EVENT_GRID_TOPIC_SUBSCRIPTIONS,
        name="Event Grid Topic Subscriptions",
        entities=(EVENT_GRID_TOPIC_SUBSCRIPTION_ENTITY,),
        relationships=(EVENT_GRID_TOPIC_HAS_SUBSCRIPTION,),
        depends_on=(
            STEP_AD_ACCOUNT,
            STEP_RM_RESOURCES_RESOURCE_GROUPS,
            STEP_RM_EVENT_GRID_TOPICS,
        ),
        execution_handler=fetch_event_grid_topic_subscriptions,
    ),
)
