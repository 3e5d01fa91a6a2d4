"""
Unit tests for field descriptors and schema resolution.

Tests verify:
1. Field declarations are validated into frozen descriptors
2. Schemas merge across derivation chains in a stable order
3. Resolution is deterministic and cached per type
"""

import pytest
from pydantic import ValidationError

from datumo import (
    FieldDescriptor,
    FieldType,
    Model,
    ModelMeta,
    SchemaDefinitionError,
    SchemaResolutionError,
    clear_schema_cache,
    resolve_schema,
)
from datumo.schemas import merge_schema, normalize_schema


# =============================================================================
# FIELD DESCRIPTOR TESTS
# =============================================================================

class TestFieldDescriptor:
    """Tests for FieldDescriptor validation."""

    def test_defaults(self) -> None:
        """An empty declaration is an optional, untyped field."""
        descriptor = FieldDescriptor()
        assert descriptor.type is FieldType.ANY
        assert descriptor.required is False
        assert descriptor.format is None
        assert descriptor.properties is None

    def test_nested_properties_become_descriptors(self) -> None:
        """Nested property declarations are validated recursively."""
        descriptor = FieldDescriptor.model_validate({
            "type": "object",
            "properties": {"postalCode": {"type": "string", "required": True}},
        })
        nested = descriptor.properties["postalCode"]
        assert isinstance(nested, FieldDescriptor)
        assert nested.required is True
        assert descriptor.is_nested

    def test_properties_require_object_type(self) -> None:
        """Only object fields may declare properties."""
        with pytest.raises(ValidationError):
            FieldDescriptor.model_validate({"type": "string", "properties": {}})

    def test_descriptor_is_frozen(self) -> None:
        """Descriptors cannot be mutated after creation."""
        descriptor = FieldDescriptor(type=FieldType.STRING)
        with pytest.raises(ValidationError):
            descriptor.required = True

    def test_nested_properties_are_read_only(self) -> None:
        descriptor = FieldDescriptor.model_validate({
            "type": "object",
            "properties": {"postalCode": {"type": "string"}},
        })
        with pytest.raises(TypeError):
            descriptor.properties["planet"] = FieldDescriptor()
        assert list(descriptor.properties) == ["postalCode"]

    def test_nested_properties_dump_as_dicts(self) -> None:
        descriptor = FieldDescriptor.model_validate({
            "type": "object",
            "properties": {"postalCode": {"type": "string", "required": True}},
        })
        dumped = descriptor.model_dump(mode="json", exclude_none=True)
        assert dumped == {
            "type": "object",
            "required": False,
            "properties": {"postalCode": {"type": "string", "required": True}},
        }


class TestNormalizeSchema:
    """Tests for normalize_schema function."""

    def test_keeps_declaration_order(self) -> None:
        schema = normalize_schema("T", {"b": {"type": "string"}, "a": {"type": "number"}})
        assert list(schema) == ["b", "a"]
        assert schema["a"].type is FieldType.NUMBER

    def test_unknown_type_tag_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError) as exc_info:
            normalize_schema("T", {"a": {"type": "decimal"}})
        assert exc_info.value.model_name == "T"

    def test_unknown_descriptor_key_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            normalize_schema("T", {"a": {"type": "string", "requird": True}})

    def test_non_mapping_declaration_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            normalize_schema("T", {"a": "string"})

    def test_underscore_name_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            normalize_schema("T", {"_hidden": {"type": "string"}})

    def test_accepts_descriptor_instances(self) -> None:
        descriptor = FieldDescriptor(type=FieldType.BOOLEAN)
        assert normalize_schema("T", {"flag": descriptor})["flag"] is descriptor


# =============================================================================
# SCHEMA RESOLUTION TESTS
# =============================================================================

class TestMergeSchema:
    """Tests for merge_schema function."""

    def test_no_declaration_inherits(self) -> None:
        ancestor = normalize_schema("A", {"a": {}})
        assert merge_schema(ancestor, None) == ancestor

    def test_declaration_replaces_without_extend(self) -> None:
        ancestor = normalize_schema("A", {"a": {}})
        declared = normalize_schema("B", {"b": {}})
        assert list(merge_schema(ancestor, declared)) == ["b"]

    def test_extend_appends_and_overrides_in_place(self) -> None:
        """Overridden fields keep their position, the declared descriptor wins."""
        ancestor = normalize_schema("A", {"a": {"type": "string"}, "b": {}})
        declared = normalize_schema("B", {"c": {}, "a": {"type": "number"}})
        merged = merge_schema(ancestor, declared, extend=True)
        assert list(merged) == ["a", "b", "c"]
        assert merged["a"].type is FieldType.NUMBER

    def test_inputs_not_mutated(self) -> None:
        ancestor = normalize_schema("A", {"a": {}})
        merge_schema(ancestor, normalize_schema("B", {"b": {}}), extend=True)
        assert list(ancestor) == ["a"]


class TestResolveSchema:
    """Tests for resolve_schema across model types."""

    def test_root_schema_is_empty(self) -> None:
        assert dict(Model.schema) == {}

    def test_declared_fields(self, person_model) -> None:
        assert list(person_model.schema) == ["givenName", "middleName", "familyName", "email"]
        assert person_model.schema["email"].format == "email"

    def test_extend_merges_ancestor(self, worker_model) -> None:
        """Worker holds all Person fields, then its own, in that order."""
        assert list(worker_model.schema) == [
            "givenName", "middleName", "familyName", "email", "position", "company",
        ]
        assert worker_model.schema["position"].required is True

    def test_replace_without_extend(self, person_model) -> None:
        class Badge(person_model):
            fields = {"badgeId": {"type": "string"}}

        assert list(Badge.schema) == ["badgeId"]

    def test_subclass_without_fields_inherits(self, person_model) -> None:
        class Customer(person_model):
            pass

        assert Customer.schema == person_model.schema

    def test_extend_override(self, person_model) -> None:
        class StrictPerson(person_model, extend=True):
            fields = {"email": {"type": "string", "format": "email", "required": True}}

        assert list(StrictPerson.schema) == list(person_model.schema)
        assert StrictPerson.schema["email"].required is True
        assert person_model.schema["email"].required is False

    def test_schema_is_read_only(self, person_model) -> None:
        with pytest.raises(TypeError):
            person_model.schema["extra"] = FieldDescriptor()

    def test_nested_schema_is_read_only(self, contact_model) -> None:
        with pytest.raises(TypeError):
            contact_model.schema["address"].properties["planet"] = FieldDescriptor(required=True)
        assert list(contact_model.schema["address"].properties) == ["street", "postalCode"]
        assert contact_model({"name": "Lynn", "address": {"postalCode": "48109"}}).is_valid()

    def test_resolution_is_stable(self, worker_model) -> None:
        """Repeated and post-eviction resolution give equal schemas."""
        first = resolve_schema(worker_model)
        assert resolve_schema(worker_model) is first
        clear_schema_cache()
        assert dict(resolve_schema(worker_model)) == dict(first)

    def test_non_model_type_has_no_schema(self) -> None:
        with pytest.raises(SchemaResolutionError):
            resolve_schema(int)

    def test_extend_requires_model_base(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            ModelMeta("Loose", (object,), {"fields": {}}, extend=True)


class TestSchemaDefinitionErrors:
    """Definition-time checks on declared fields and mappings."""

    def test_field_colliding_with_method(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            class Bad(Model):
                fields = {"validate": {"type": "string"}}

    def test_field_colliding_with_user_attribute(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            class Bad(Model):
                fields = {"label": {"type": "string"}}

                def label(self) -> str:
                    return "x"

    def test_mapping_for_undeclared_field(self) -> None:
        with pytest.raises(SchemaDefinitionError) as exc_info:
            class Bad(Model):
                fields = {"name": {"type": "string"}}
                mappings = {"ldap": {"surname": "sn"}}
        assert "ldap" in str(exc_info.value)

    def test_schema_and_mappings_not_on_instances(self, person_model) -> None:
        """Type-level properties never leak onto the instance surface."""
        record = person_model()
        assert not hasattr(record, "schema")
        assert not hasattr(record, "mappings")
        assert not hasattr(record, "fields")
