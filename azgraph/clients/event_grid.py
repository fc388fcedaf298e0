from azure.mgmt.eventgrid import EventGridManagementClient

from azgraph.clients.base import RawCallback, ResourceClient
from azgraph.models.scope import DomainScope, DomainTopicScope, ResourceGroupScope, TopicScope


class EventGridClient(ResourceClient):
    def _create_client(self) -> EventGridManagementClient:
        return EventGridManagementClient(self.credential, self.config.subscription_id)

    def iterate_domains(self, resource_group: ResourceGroupScope, callback: RawCallback) -> None:
        self._iterate(
            f"domains.list_by_resource_group({resource_group.name})",
            lambda: self.client.domains.list_by_resource_group(resource_group.name),
            callback,
        )

    def iterate_domain_topics(self, domain: DomainScope, callback: RawCallback) -> None:
        self._iterate(
            f"domain_topics.list_by_domain({domain.name})",
            lambda: self.client.domain_topics.list_by_domain(domain.resource_group, domain.name),
            callback,
        )

    def iterate_domain_topic_subscriptions(
        self, domain_topic: DomainTopicScope, callback: RawCallback
    ) -> None:
        self._iterate(
            f"event_subscriptions.list_by_domain_topic({domain_topic.name})",
            lambda: self.client.event_subscriptions.list_by_domain_topic(
                domain_topic.resource_group, domain_topic.domain_name, domain_topic.name
            ),
            callback,
        )

    def iterate_topics(self, resource_group: ResourceGroupScope, callback: RawCallback) -> None:
        self._iterate(
            f"topics.list_by_resource_group({resource_group.name})",
            lambda: self.client.topics.list_by_resource_group(resource_group.name),
            callback,
        )

    def iterate_topic_subscriptions(self, topic: TopicScope, callback: RawCallback) -> None:
        self._iterate(
            f"event_subscriptions.list_by_resource({topic.name})",
            lambda: self.client.event_subscriptions.list_by_resource(
                topic.resource_group,
                topic.provider_namespace,
                topic.resource_type_name,
                topic.name,
            ),
            callback,
        )
