"""
Field descriptors and schema normalization.

A schema is a mapping from field name to FieldDescriptor. Model types
declare their fields as plain dicts; those dicts are validated into
frozen pydantic models here, once, at class-definition time.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from datumo.errors import SchemaDefinitionError


# =============================================================================
# ENUMS
# =============================================================================

class FieldType(str, Enum):
    """Primitive type tag of a field."""
    STRING = "string"
    NUMBER = "number"    # int or float, never bool
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"    # may declare nested properties
    ARRAY = "array"
    ANY = "any"


# =============================================================================
# FIELD DESCRIPTOR
# =============================================================================

class FieldDescriptor(BaseModel):
    """
    One entry of a schema.

    Frozen: a resolved schema is shared by every instance of its type and
    by every type derived from it, so descriptors are never mutated.
    Nested ``properties`` are held as a read-only mapping for the same
    reason.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType = Field(
        default=FieldType.ANY,
        description="Primitive type tag (string, number, boolean, object, ...)"
    )
    required: bool = Field(
        default=False,
        description="Whether validation reports the field when unset"
    )
    format: str | None = Field(
        default=None,
        description="Semantic refinement for string values (e.g., 'email')"
    )
    properties: dict[str, "FieldDescriptor"] | None = Field(
        default=None,
        description="Nested schema; only valid when type is object"
    )
    description: str | None = Field(
        default=None,
        description="Free-form documentation, never used by the engine"
    )

    @field_validator("properties", mode="after")
    @classmethod
    def freeze_properties(
        cls, value: dict[str, "FieldDescriptor"] | None
    ) -> Mapping[str, "FieldDescriptor"] | None:
        # Nested schemas are shared across types, same as top-level ones
        if value is None:
            return None
        return MappingProxyType(dict(value))

    @field_serializer("properties")
    def dump_properties(
        self, value: Mapping[str, "FieldDescriptor"] | None, info: SerializationInfo
    ) -> dict[str, Any] | None:
        if value is None:
            return None
        return {
            name: descriptor.model_dump(mode=info.mode, exclude_none=info.exclude_none)
            for name, descriptor in value.items()
        }

    @model_validator(mode="after")
    def properties_require_object(self) -> "FieldDescriptor":
        if self.properties is not None and self.type is not FieldType.OBJECT:
            raise ValueError(
                f"'properties' is only allowed on object fields, not {self.type.value}"
            )
        return self

    @property
    def is_nested(self) -> bool:
        """True for object fields that declare a nested schema."""
        return self.type is FieldType.OBJECT and self.properties is not None


Schema = Mapping[str, FieldDescriptor]


def to_descriptor(model_name: str, field_name: str, raw: Any) -> FieldDescriptor:
    """Validate one raw field declaration into a FieldDescriptor."""
    if isinstance(raw, FieldDescriptor):
        return raw
    if not isinstance(raw, Mapping):
        raise SchemaDefinitionError(
            model_name,
            f"field '{field_name}' must be declared as a mapping, got {type(raw).__name__}",
        )
    try:
        return FieldDescriptor.model_validate(dict(raw))
    except ValidationError as e:
        raise SchemaDefinitionError(
            model_name, f"invalid declaration for field '{field_name}': {e}"
        ) from e


def normalize_schema(model_name: str, raw: Mapping[str, Any]) -> dict[str, FieldDescriptor]:
    """
    Turn a declared field table into a schema.

    Args:
        model_name: Name of the declaring type (for error messages)
        raw: Mapping of field name to dict or FieldDescriptor

    Returns:
        New dict of field name to FieldDescriptor, declaration order kept

    Raises:
        SchemaDefinitionError: If a name or a declaration is invalid
    """
    if not isinstance(raw, Mapping):
        raise SchemaDefinitionError(
            model_name, f"'fields' must be a mapping, got {type(raw).__name__}"
        )

    schema: dict[str, FieldDescriptor] = {}
    for field_name, declaration in raw.items():
        if not isinstance(field_name, str) or not field_name:
            raise SchemaDefinitionError(
                model_name, f"field names must be non-empty strings, got {field_name!r}"
            )
        if field_name.startswith("_"):
            raise SchemaDefinitionError(
                model_name, f"field '{field_name}' must not start with an underscore"
            )
        schema[field_name] = to_descriptor(model_name, field_name, declaration)
    return schema
