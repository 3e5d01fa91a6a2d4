"""
Schema Resolver

Computes the effective schema of a model type from its ancestor's
resolved schema and its own declaration. Resolution is a pure function of
declarations fixed at class-definition time, so results are memoised per
type; a cache miss (or eviction) only costs an identical recomputation.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from cachetools import LRUCache, cached

from datumo.config import SCHEMA_CACHE
from datumo.errors import SchemaResolutionError
from datumo.schemas.base import FieldDescriptor, Schema

logger = logging.getLogger(__name__)

DECLARATION_ATTR = "__datumo_declaration__"

_schema_cache: LRUCache = LRUCache(maxsize=SCHEMA_CACHE["maxsize"])


@dataclass(frozen=True)
class SchemaDeclaration:
    """What a single model type declares about its own schema."""
    fields: Mapping[str, FieldDescriptor] | None
    extend: bool
    parent: type | None


def merge_schema(
    ancestor: Schema,
    declared: Mapping[str, FieldDescriptor] | None,
    extend: bool = False,
) -> dict[str, FieldDescriptor]:
    """
    Combine an ancestor schema with a type's own declaration.

    - No declaration: the ancestor schema is inherited unchanged.
    - Declaration without extend: exactly the declared fields.
    - Declaration with extend: ancestor fields followed by new ones;
      overridden fields keep their ancestor position, declared wins.

    Neither argument is modified.
    """
    if declared is None:
        return dict(ancestor)
    if not extend:
        return dict(declared)
    merged = dict(ancestor)
    merged.update(declared)
    return merged


def get_declaration(model_type: type) -> SchemaDeclaration | None:
    """Own (non-inherited) declaration of a type, if it is a model type."""
    if not isinstance(model_type, type):
        return None
    return model_type.__dict__.get(DECLARATION_ATTR)


@cached(cache=_schema_cache)
def resolve_schema(model_type: type) -> Mapping[str, FieldDescriptor]:
    """
    Resolve the effective schema of a model type.

    Returns:
        Read-only mapping of field name to FieldDescriptor

    Raises:
        SchemaResolutionError: If the type is not a model type
    """
    declaration = get_declaration(model_type)
    if declaration is None:
        raise SchemaResolutionError(model_type)

    ancestor: Schema = {}
    if declaration.parent is not None:
        ancestor = resolve_schema(declaration.parent)

    schema = merge_schema(ancestor, declaration.fields, declaration.extend)
    logger.debug(f"Resolved schema for {model_type.__name__}: {list(schema)}")
    return MappingProxyType(schema)


def clear_schema_cache() -> None:
    """Forget every memoised schema (they are recomputed on demand)."""
    _schema_cache.clear()
