"""
Entity and relationship model tests.
"""
import pytest

from azgraph.converters.network import create_network_security_group_entity, create_virtual_network_entity
from azgraph.errors import IntegrationError
from azgraph.models.entity import (
    Entity,
    RelationshipClass,
    RelationshipSchema,
    assign_tags,
    create_direct_relationship,
    create_integration_entity,
    generate_relationship_key,
    generate_relationship_type,
    set_raw_data,
)
from azgraph.provider import create_azure_web_linker


def _entity(key="k1", _type="azure_thing", **props):
    return Entity(key=key, type=_type, classes=["Resource"], properties=props)


# ------------------------------------------------------ create entity
class TestCreateIntegrationEntity:
    def setup_method(self):
        self.source = {
            "id": "/subscriptions/s/resourceGroups/rg/providers/X/things/a",
            "name": "a",
            "location": "eastus",
            "count": 3,
            "nested": {"ignored": True},
            "empty": None,
            "zones": ["1", "2"],
            "tags": {"environment": "dev", "owner": "ops"},
        }

    def _create(self, **assign):
        values = {"_type": "azure_thing", "_class": "Resource"}
        values.update(assign)
        return create_integration_entity(self.source, values, tag_properties=["environment"])

    def test_key_defaults_to_source_id(self):
        entity = self._create()
        assert entity.key == self.source["id"]

    def test_explicit_key_wins(self):
        entity = self._create(_key="custom")
        assert entity.key == "custom"

    def test_missing_key_raises(self):
        with pytest.raises(IntegrationError):
            create_integration_entity({"name": "x"}, {"_type": "t", "_class": "C"})

    def test_primitive_fields_copied(self):
        entity = self._create()
        assert entity["location"] == "eastus"
        assert entity["count"] == 3
        assert entity["zones"] == ["1", "2"]

    def test_nested_and_null_fields_skipped(self):
        entity = self._create()
        assert "nested" not in entity
        assert "empty" not in entity

    def test_tags_copied_and_lifted(self):
        entity = self._create()
        assert entity["tag.environment"] == "dev"
        assert entity["tag.owner"] == "ops"
        assert entity["environment"] == "dev"
        assert "owner" not in entity

    def test_untagged_source_has_no_lifted_property(self):
        del self.source["tags"]
        entity = self._create()
        assert "environment" not in entity
        assert not any(name.startswith("tag.") for name in entity.properties)

    @pytest.mark.parametrize("build", [
        create_virtual_network_entity,
        create_network_security_group_entity,
    ])
    def test_untagged_network_resources_have_no_environment(self, build):
        data = {
            "id": "/subscriptions/s/resourceGroups/rg/providers/Microsoft.Network/things/a",
            "name": "a",
            "location": "eastus",
        }
        entity = build(create_azure_web_linker("www.fake-domain.com"), data)
        assert "environment" not in entity
        assert "tag.environment" not in entity

    def test_assigned_none_removes_field(self):
        entity = self._create(location=None)
        assert "location" not in entity

    def test_display_name_falls_back_to_name(self):
        entity = self._create()
        assert entity["displayName"] == "a"

    def test_raw_data_attached(self):
        entity = self._create()
        assert entity.raw_data == [{"name": "default", "rawData": self.source}]

    def test_no_raw_data_for_empty_source(self):
        entity = create_integration_entity({}, {"_key": "k", "_type": "t", "_class": "C"})
        assert entity.raw_data == []
        assert entity["displayName"] == "k"

    def test_classes_normalized_to_list(self):
        entity = self._create(_class=("Service", "Resource"))
        assert entity.classes == ["Service", "Resource"]

    def test_to_dict_wire_form(self):
        out = self._create().to_dict()
        assert out["_key"] == self.source["id"]
        assert out["_type"] == "azure_thing"
        assert out["_class"] == ["Resource"]
        assert out["_rawData"][0]["name"] == "default"
        assert "_rawData" not in self._create().to_dict(include_raw_data=False)


class TestTagsAndRawData:
    def test_non_mapping_tags_ignored(self):
        entity = _entity()
        assign_tags(entity, ["a", "b"])
        assert not any(k.startswith("tag.") for k in entity.properties)

    def test_duplicate_raw_data_name_raises(self):
        entity = _entity()
        set_raw_data(entity, "extra", {"a": 1})
        with pytest.raises(IntegrationError):
            set_raw_data(entity, "extra", {"a": 2})


# ------------------------------------------------------ relationships
class TestRelationshipNaming:
    def test_key_format(self):
        assert generate_relationship_key("a", RelationshipClass.HAS, "b") == "a|has|b"

    def test_key_is_deterministic(self):
        assert generate_relationship_key("a", "USES", "b") == generate_relationship_key("a", "USES", "b")

    @pytest.mark.parametrize("_class,from_type,to_type,expected", [
        ("HAS", "azure_account", "azure_keyvault_service", "azure_account_has_keyvault_service"),
        ("HAS", "azure_resource_group", "azure_vnet", "azure_resource_group_has_vnet"),
        ("CONTAINS", "azure_management_group", "azure_management_group",
         "azure_management_group_contains_group"),
        ("HAS", "azure_event_grid_domain", "azure_event_grid_domain_topic",
         "azure_event_grid_domain_has_topic"),
        ("USES", "azure_diagnostic_log_setting", "azure_storage_account",
         "azure_diagnostic_log_setting_uses_storage_account"),
        ("PROTECTS", "azure_security_group", "azure_nic", "azure_security_group_protects_nic"),
    ])
    def test_type_strips_shared_prefix(self, _class, from_type, to_type, expected):
        assert generate_relationship_type(_class, from_type, to_type) == expected

    def test_schema_between_uses_generated_type(self):
        schema = RelationshipSchema.between(RelationshipClass.HAS, "azure_account", "azure_user")
        assert schema.type == "azure_account_has_user"
        assert schema.relationship_class == "HAS"


class TestCreateDirectRelationship:
    def test_from_entities(self):
        rel = create_direct_relationship(
            RelationshipClass.HAS,
            from_entity=_entity("a", "azure_account"),
            to_entity=_entity("b", "azure_user"),
        )
        assert rel.to_dict() == {
            "_class": "HAS",
            "_fromEntityKey": "a",
            "_key": "a|has|b",
            "_toEntityKey": "b",
            "_type": "azure_account_has_user",
            "displayName": "HAS",
        }

    def test_type_override(self):
        rel = create_direct_relationship(
            "HAS",
            from_entity=_entity("a", "azure_account"),
            to_key="g",
            to_type="azure_user_group",
            properties={"_type": "azure_account_has_group"},
        )
        assert rel.type == "azure_account_has_group"
        assert "_type" not in rel.properties

    def test_missing_endpoint_raises(self):
        with pytest.raises(IntegrationError):
            create_direct_relationship("HAS", from_entity=_entity(), to_key="b")
