"""
Datumo Schemas Package

Field descriptors, schema resolution across derivation chains, and the
exclude/subset derivation operators.
"""

from datumo.schemas.base import FieldDescriptor, FieldType, Schema, normalize_schema
from datumo.schemas.derivation import exclude, subset
from datumo.schemas.resolver import clear_schema_cache, merge_schema, resolve_schema

__all__ = [
    "FieldDescriptor",
    "FieldType",
    "Schema",
    "normalize_schema",
    "exclude",
    "subset",
    "merge_schema",
    "resolve_schema",
    "clear_schema_cache",
]
