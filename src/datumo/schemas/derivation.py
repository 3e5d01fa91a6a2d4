"""
Derivation Engine

exclude() and subset() are pure schema-to-schema functions. The model
layer wraps their result in a new model type; nothing else about the
type depends on which operator produced it.
"""

import logging
from collections.abc import Iterable

from datumo.errors import DerivationError
from datumo.schemas.base import FieldDescriptor, Schema

logger = logging.getLogger(__name__)


def _check_names(schema: Schema, names: Iterable[str], operator: str, model_name: str) -> list[str]:
    names = list(names)
    missing = [name for name in names if name not in schema]
    if missing:
        raise DerivationError(model_name, operator, missing)
    return names


def exclude(schema: Schema, names: Iterable[str], model_name: str = "schema") -> dict[str, FieldDescriptor]:
    """
    Drop the named fields from a schema.

    Raises:
        DerivationError: If any name is not in the schema
    """
    dropped = set(_check_names(schema, names, "exclude", model_name))
    derived = {name: d for name, d in schema.items() if name not in dropped}
    logger.debug(f"{model_name}.exclude{tuple(sorted(dropped))} -> {list(derived)}")
    return derived


def subset(schema: Schema, names: Iterable[str], model_name: str = "schema") -> dict[str, FieldDescriptor]:
    """
    Keep only the named fields of a schema, with their original descriptors.

    Fields keep the schema's declaration order, not the argument order.

    Raises:
        DerivationError: If any name is not in the schema
    """
    kept = set(_check_names(schema, names, "subset", model_name))
    derived = {name: d for name, d in schema.items() if name in kept}
    logger.debug(f"{model_name}.subset{tuple(sorted(kept))} -> {list(derived)}")
    return derived
