"""
Step handler tests. Resource clients are replaced with fakes that replay
fixture payloads, so these exercise fetch -> convert -> persist end to end.
"""
import pytest

from azgraph.constants import (
    ACCOUNT_ENTITY_TYPE,
    EXECUTE_FIRST_STEPS,
    STEP_AD_ACCOUNT,
    STEP_AD_USERS,
    STEP_RM_ADVISOR_RECOMMENDATIONS,
    STEP_RM_MANAGEMENT_GROUPS,
)
from azgraph.errors import StepDependencyError
from azgraph.models.entity import Entity
from azgraph.state import JobState
from azgraph.steps import ALL_STEPS, get_step
from azgraph.steps import active_directory, advisor, event_grid, key_vault, management_groups, network, resources
from azgraph.steps.linking import Linked, TargetNotFound, link_to_existing, link_to_resource_group
from azgraph.steps.start_states import get_step_start_states

from conftest import RESOURCE_GROUP_ID


def _fake(**methods):
    """A client class whose iterate_* methods replay the given payload lists."""

    class FakeClient:
        calls = []

        def __init__(self, config, logger=None):
            self.config = config

    for name, value in methods.items():
        if name.startswith("iterate_"):
            def iterate(self, *args, _name=name, _value=value):
                callback = args[-1]
                scope = args[0] if len(args) > 1 else None
                FakeClient.calls.append((_name, scope))
                items = _value(scope) if callable(_value) else _value
                for item in items:
                    callback(item)
            setattr(FakeClient, name, iterate)
        else:
            setattr(FakeClient, name, lambda self, *a, _value=value: _value)
    return FakeClient


def _add_resource_group(job_state, name="j1dev"):
    return job_state.add_entity(
        Entity(
            key=RESOURCE_GROUP_ID if name == "j1dev" else f"/subscriptions/s/resourceGroups/{name}",
            type="azure_resource_group",
            classes=["Group"],
            properties={"name": name},
        )
    )


def _rel_keys(job_state):
    return {r.key for r in job_state.relationships}


# ----------------------------------------------------------- directory
class TestActiveDirectorySteps:
    def test_account_skips_graph_when_directory_skipped(self, context, monkeypatch):
        context.job_state = JobState()
        context.instance.config.skip_active_directory = True

        def explode(*args, **kwargs):
            raise AssertionError("Graph must not be called")

        monkeypatch.setattr(active_directory, "DirectoryClient", explode)
        active_directory.fetch_account(context)

        account = context.job_state.get_data(ACCOUNT_ENTITY_TYPE)
        assert account.key == "azure_test-instance"
        assert context.job_state.find_entity(account.key) is account

    def test_account_with_organization(self, context, monkeypatch):
        context.job_state = JobState()
        org = {
            "id": "org",
            "displayName": "Contoso",
            "verifiedDomains": [{"name": "contoso.com", "isDefault": True}],
        }
        monkeypatch.setattr(
            active_directory,
            "DirectoryClient",
            _fake(fetch_organization=org, fetch_identity_security_defaults_policy=None),
        )
        active_directory.fetch_account(context)

        account = context.job_state.get_data(ACCOUNT_ENTITY_TYPE)
        assert account["defaultDomain"] == "contoso.com"
        assert "securityDefaultsEnabled" not in account

    def test_users_carry_registration_details(self, context, account, monkeypatch):
        monkeypatch.setattr(
            active_directory,
            "DirectoryClient",
            _fake(
                iterate_credential_user_registration_details=[{"id": "u1", "isMfaRegistered": True}],
                iterate_users=[
                    {"id": "u1", "displayName": "First User"},
                    {"id": "u2", "displayName": "Second User"},
                ],
            ),
        )
        active_directory.fetch_users(context)

        u1 = context.job_state.find_entity("azure_u1")
        u2 = context.job_state.find_entity("azure_u2")
        assert u1["isMfaRegistered"] is True
        assert "isMfaRegistered" not in u2
        assert f"{account.key}|has|azure_u1" in _rel_keys(context.job_state)

    def test_groups_and_service_principals(self, context, account, monkeypatch):
        monkeypatch.setattr(
            active_directory,
            "DirectoryClient",
            _fake(
                iterate_groups=[{"id": "g1", "displayName": "Admins"}],
                iterate_service_principals=[{"id": "sp1", "displayName": "app"}],
            ),
        )
        active_directory.fetch_groups(context)
        active_directory.fetch_service_principals(context)

        types = {r.type for r in context.job_state.relationships}
        assert types == {"azure_account_has_group", "azure_account_has_service_principal"}


# ----------------------------------------------------- resource groups
def test_fetch_resource_groups(context, monkeypatch):
    monkeypatch.setattr(
        resources,
        "ResourcesClient",
        _fake(iterate_resource_groups=[{"id": RESOURCE_GROUP_ID, "name": "j1dev", "location": "eastus"}]),
    )
    resources.fetch_resource_groups(context)
    group = context.job_state.find_entity(RESOURCE_GROUP_ID)
    assert group["webLink"] == f"https://portal.azure.com/#@www.fake-domain.com/resource{RESOURCE_GROUP_ID}"


# ------------------------------------------------------------- network
class TestNetworkSteps:
    def test_virtual_networks_with_subnets(self, context, load_fixture, monkeypatch):
        _add_resource_group(context.job_state)
        vnet_data = load_fixture("virtual_network.json")
        monkeypatch.setattr(network, "NetworkClient", _fake(iterate_virtual_networks=[vnet_data]))
        network.fetch_virtual_networks(context)

        subnet_id = vnet_data["subnets"][0]["id"]
        assert context.job_state.find_entity(subnet_id) is not None
        keys = _rel_keys(context.job_state)
        assert f"{vnet_data['id']}|contains|{subnet_id}" in keys
        assert f"{RESOURCE_GROUP_ID}|has|{vnet_data['id']}" in keys

    def test_security_group_links_only_stored_targets(self, context, load_fixture, monkeypatch):
        vnet_data = load_fixture("virtual_network.json")
        nic_data = load_fixture("network_interface.json")
        nsg_data = load_fixture("network_security_group.json")
        monkeypatch.setattr(
            network,
            "NetworkClient",
            _fake(
                iterate_virtual_networks=[vnet_data],
                iterate_network_interfaces=[nic_data],
                iterate_network_security_groups=[nsg_data],
            ),
        )
        network.fetch_virtual_networks(context)
        network.fetch_network_interfaces(context)
        network.fetch_network_security_groups(context)

        protects = [r for r in context.job_state.relationships if r.relationship_class == "PROTECTS"]
        assert sorted(r.type for r in protects) == [
            "azure_security_group_protects_nic",
            "azure_security_group_protects_subnet",
        ]
        assert not any("not-ingested" in r.to_key for r in protects)

    def test_load_balancers_and_public_ips(self, context, load_fixture, monkeypatch):
        _add_resource_group(context.job_state)
        ip = {
            "id": f"{RESOURCE_GROUP_ID}/providers/Microsoft.Network/publicIPAddresses/ip1",
            "name": "ip1",
            "ipAddress": "52.1.2.3",
        }
        monkeypatch.setattr(
            network,
            "NetworkClient",
            _fake(
                iterate_load_balancers=[load_fixture("load_balancer.json")],
                iterate_public_ip_addresses=[ip],
            ),
        )
        network.fetch_load_balancers(context)
        network.fetch_public_ip_addresses(context)

        counts = context.job_state.counts_by_type()
        assert counts["entities"]["azure_lb"] == 1
        assert counts["entities"]["azure_public_ip"] == 1
        assert counts["relationships"]["azure_resource_group_has_lb"] == 1
        assert counts["relationships"]["azure_resource_group_has_public_ip"] == 1

    def test_resource_group_link_ignores_case_and_skips_missing_groups(self, context, load_fixture, monkeypatch):
        _add_resource_group(context.job_state)
        nic = load_fixture("network_interface.json")
        upper = dict(nic, id=nic["id"].replace("/resourceGroups/j1dev/", "/resourceGroups/J1DEV/"), name="upper")
        orphan = dict(nic, id=nic["id"].replace("/resourceGroups/j1dev/", "/resourceGroups/not-ingested/"), name="orphan")
        no_group = dict(nic, id="/providers/Microsoft.Network/networkInterfaces/x", name="no-group")
        monkeypatch.setattr(
            network, "NetworkClient", _fake(iterate_network_interfaces=[upper, orphan, no_group])
        )

        network.fetch_network_interfaces(context)

        state = context.job_state
        assert len(state.entities) == 5
        has = [r for r in state.relationships if r.relationship_class == "HAS"]
        assert [(r.from_key, r.to_key) for r in has] == [(RESOURCE_GROUP_ID, upper["id"])]
        assert all(state.find_entity(r.from_key) is not None for r in state.relationships)


# ----------------------------------------------------------- key vault
class TestKeyVaultStep:
    def test_vaults_and_diagnostic_settings(self, context, account, load_fixture, monkeypatch):
        _add_resource_group(context.job_state)
        vault = load_fixture("key_vault.json")
        setting = load_fixture("diagnostic_setting.json")
        vault_client = _fake(iterate_key_vaults=[vault])
        monitor_client = _fake(iterate_diagnostic_settings=[setting])
        monkeypatch.setattr(key_vault, "KeyVaultClient", vault_client)
        monkeypatch.setattr(key_vault, "MonitorClient", monitor_client)

        key_vault.fetch_key_vaults(context)

        log_key = f"{setting['id']}/logs/AuditEvent/true/7/true"
        rels = {r.key: r for r in context.job_state.relationships}
        assert rels[f"{account.key}|has|{vault['id']}"].type == "azure_account_has_keyvault_service"
        assert rels[f"{RESOURCE_GROUP_ID}|has|{vault['id']}"].type == "azure_resource_group_has_keyvault_service"
        assert rels[f"{vault['id']}|has|{log_key}"].type == "azure_keyvault_service_has_diagnostic_log_setting"
        uses = rels[f"{log_key}|uses|{setting['storageAccountId']}"]
        assert uses.type == "azure_diagnostic_log_setting_uses_storage_account"
        assert uses.to_dict()["displayName"] == "USES"

        # diagnostic settings are listed for the vault by its resource id
        assert ("iterate_diagnostic_settings", vault["id"]) in monitor_client.calls

    def test_resource_group_without_name_skipped(self, context, monkeypatch):
        context.job_state.add_entity(
            Entity(key=RESOURCE_GROUP_ID, type="azure_resource_group", classes=["Group"])
        )
        vault_client = _fake(iterate_key_vaults=[])
        monkeypatch.setattr(key_vault, "KeyVaultClient", vault_client)
        monkeypatch.setattr(key_vault, "MonitorClient", _fake())

        key_vault.fetch_key_vaults(context)
        assert vault_client.calls == []


# ---------------------------------------------------------- event grid
class TestEventGridSteps:
    def setup_method(self):
        self.domain_id = f"{RESOURCE_GROUP_ID}/providers/Microsoft.EventGrid/domains/d1"
        self.topic_id = f"{RESOURCE_GROUP_ID}/providers/Microsoft.EventGrid/topics/t1"

    def test_domain_chain(self, context, monkeypatch):
        _add_resource_group(context.job_state)
        domain_topic_id = f"{self.domain_id}/topics/dt1"
        sub_id = f"{domain_topic_id}/providers/Microsoft.EventGrid/eventSubscriptions/s1"
        client = _fake(
            iterate_domains=[{"id": self.domain_id, "name": "d1", "type": "Microsoft.EventGrid/domains"}],
            iterate_domain_topics=[{"id": domain_topic_id, "name": "dt1"}],
            iterate_domain_topic_subscriptions=[{"id": sub_id, "name": "s1"}],
        )
        monkeypatch.setattr(event_grid, "EventGridClient", client)

        event_grid.fetch_event_grid_domains(context)
        event_grid.fetch_event_grid_domain_topics(context)
        event_grid.fetch_event_grid_domain_topic_subscriptions(context)

        keys = _rel_keys(context.job_state)
        assert f"{RESOURCE_GROUP_ID}|has|{self.domain_id}" in keys
        assert f"{self.domain_id}|has|{domain_topic_id}" in keys
        assert f"{domain_topic_id}|has|{sub_id}" in keys

        scopes = dict(client.calls)
        assert scopes["iterate_domain_topics"].resource_group == "j1dev"
        topic_scope = scopes["iterate_domain_topic_subscriptions"]
        assert (topic_scope.domain_name, topic_scope.name) == ("d1", "dt1")

    def test_topic_subscriptions_use_topic_type(self, context, monkeypatch):
        _add_resource_group(context.job_state)
        sub_id = f"{self.topic_id}/providers/Microsoft.EventGrid/eventSubscriptions/s1"
        client = _fake(
            iterate_topics=[{"id": self.topic_id, "name": "t1", "type": "Microsoft.EventGrid/topics"}],
            iterate_topic_subscriptions=[{"id": sub_id, "name": "s1"}],
        )
        monkeypatch.setattr(event_grid, "EventGridClient", client)

        event_grid.fetch_event_grid_topics(context)
        event_grid.fetch_event_grid_topic_subscriptions(context)

        scope = dict(client.calls)["iterate_topic_subscriptions"]
        assert (scope.provider_namespace, scope.resource_type_name) == ("Microsoft.EventGrid", "topics")
        assert f"{self.topic_id}|has|{sub_id}" in _rel_keys(context.job_state)

    def test_topic_without_type_skipped(self, context, monkeypatch):
        context.job_state.add_entity(
            Entity(key=self.topic_id, type="azure_event_grid_topic", classes=["Queue"], properties={"name": "t1"})
        )
        client = _fake(iterate_topic_subscriptions=[])
        monkeypatch.setattr(event_grid, "EventGridClient", client)

        event_grid.fetch_event_grid_topic_subscriptions(context)
        assert client.calls == []


# ------------------------------------------------------------- advisor
class TestAdvisorStep:
    def test_links_to_stored_resource(self, context, load_fixture, monkeypatch):
        data = load_fixture("advisor_recommendation.json")
        resource = context.job_state.add_entity(
            Entity(
                key=data["resourceMetadata"]["resourceId"],
                type="azure_keyvault_service",
                classes=["Service"],
            )
        )
        monkeypatch.setattr(advisor, "AdvisorClient", _fake(iterate_recommendations=[data]))
        advisor.fetch_recommendations(context)

        (rel,) = context.job_state.relationships
        assert rel.from_key == resource.key
        assert rel.to_key == data["id"]
        assert rel.type == "azure_resource_has_advisor_recommendation"

    def test_missing_targets_add_nothing(self, context, load_fixture, monkeypatch):
        data = load_fixture("advisor_recommendation.json")
        monkeypatch.setattr(advisor, "AdvisorClient", _fake(iterate_recommendations=[data]))
        advisor.fetch_recommendations(context)

        assert context.job_state.find_entity(data["id"]) is not None
        assert context.job_state.relationships == []


# --------------------------------------------------- management groups
def test_management_group_tree(context, account, load_fixture, monkeypatch):
    root = load_fixture("management_group.json")
    client = _fake(fetch_management_group=root)
    monkeypatch.setattr(management_groups, "ManagementGroupClient", client)

    management_groups.fetch_management_groups(context)

    counts = context.job_state.counts_by_type()
    assert counts["entities"]["azure_management_group"] == 3
    assert counts["relationships"] == {
        "azure_account_has_management_group": 1,
        "azure_management_group_contains_group": 2,
    }
    assert f"{account.key}|has|{root['id']}" in _rel_keys(context.job_state)


# ------------------------------------------------------------- linking
class TestLinkToExisting:
    def test_linked_and_not_found(self, job_state, account):
        from azgraph.models.entity import create_direct_relationship

        target = job_state.add_entity(Entity(key="t", type="azure_thing", classes=["Resource"]))
        build = lambda e: create_direct_relationship("HAS", from_entity=account, to_entity=e)

        linked = link_to_existing(job_state, "t", build)
        assert isinstance(linked, Linked)
        assert linked.relationship.to_key == target.key

        missing = link_to_existing(job_state, "nope", build)
        assert missing == TargetNotFound("nope")
        assert len(job_state.relationships) == 1

    def test_resource_group_link(self, job_state):
        group = job_state.add_entity(
            Entity(key=RESOURCE_GROUP_ID, type="azure_resource_group", classes=["Group"])
        )
        vault = job_state.add_entity(Entity(
            key=f"{RESOURCE_GROUP_ID.upper()}/providers/Microsoft.KeyVault/vaults/kv",
            type="azure_keyvault_service",
            classes=["Service"],
        ))
        orphan = job_state.add_entity(Entity(key="/providers/x", type="azure_thing", classes=["Resource"]))

        linked = link_to_resource_group(job_state, vault)
        assert linked.relationship.from_key == group.key
        assert linked.relationship.type == "azure_resource_group_has_keyvault_service"
        assert link_to_resource_group(job_state, orphan) == TargetNotFound(None)
        assert len(job_state.relationships) == 1


# ------------------------------------------------------------ registry
class TestRegistry:
    def test_ids_unique_and_dependencies_known(self):
        ids = [s.id for s in ALL_STEPS]
        assert len(ids) == len(set(ids))
        for step in ALL_STEPS:
            assert set(step.depends_on) <= set(ids)

    def test_advisor_runs_after_resource_manager_steps(self):
        step = get_step(STEP_RM_ADVISOR_RECOMMENDATIONS)
        assert set(EXECUTE_FIRST_STEPS) <= set(step.depends_on)

    def test_unknown_step(self):
        with pytest.raises(StepDependencyError):
            get_step("rm-nope")

    def test_start_states(self, config):
        config.skip_active_directory = True
        config.subscription_id = None
        states = get_step_start_states(config)

        assert states[STEP_AD_ACCOUNT].disabled is False
        assert states[STEP_AD_USERS].disabled is True
        assert states[STEP_RM_MANAGEMENT_GROUPS].disabled is True
        assert len(states) == len(ALL_STEPS)

    def test_start_states_with_subscription(self, config):
        states = get_step_start_states(config)
        assert not any(s.disabled for s in states.values())
