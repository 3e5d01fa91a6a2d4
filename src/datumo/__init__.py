"""
Datumo

Declarative, schema-driven record types: declare a field schema once,
derive further types with exclude()/subset(), build sealed records from
arbitrarily named input through mapping specifications, validate on
demand and serialize to plain data.
"""

from datumo.errors import (
    DatumoError,
    DerivationError,
    FieldValidationError,
    FormatViolationError,
    InvalidMappingError,
    MappingError,
    MissingRequiredFieldError,
    RecordValidationError,
    SchemaDefinitionError,
    SchemaResolutionError,
    TypeMismatchError,
    UndeclaredFieldError,
    UnknownMappingError,
)
from datumo.model import Model, ModelMeta, metadata
from datumo.schemas import FieldDescriptor, FieldType, clear_schema_cache, resolve_schema
from datumo.utils.checks import TypeChecker, default_checker

__version__ = "0.1.0"

__all__ = [
    "Model",
    "ModelMeta",
    "metadata",
    "FieldDescriptor",
    "FieldType",
    "resolve_schema",
    "clear_schema_cache",
    "TypeChecker",
    "default_checker",
    "DatumoError",
    "SchemaDefinitionError",
    "DerivationError",
    "SchemaResolutionError",
    "MappingError",
    "UnknownMappingError",
    "InvalidMappingError",
    "UndeclaredFieldError",
    "FieldValidationError",
    "MissingRequiredFieldError",
    "TypeMismatchError",
    "FormatViolationError",
    "RecordValidationError",
]
