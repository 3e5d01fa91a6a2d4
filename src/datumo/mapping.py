"""
Mapping Resolver

Translates externally named input data into schema-field-keyed values.

A mapping specification maps a schema field to a source key expression:

    {"familyName": "sn || surname"}            # fallback chain
    {"givenName": ["givenName", "cn"]}         # same, as a list
    {"address": {"postalCode": "postalCode"}}  # nested object field

Nested specifications are resolved against the same flat input, since
sources such as directory services present a single flat key space.
"""

import copy
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Union

from datumo.config import MAPPING
from datumo.errors import InvalidMappingError
from datumo.schemas.base import FieldDescriptor, FieldType, Schema

logger = logging.getLogger(__name__)

# Normalized form: field name -> tuple of candidate keys, or nested spec
MappingSpec = dict[str, Union[tuple[str, ...], "MappingSpec"]]


def parse_source(expression: Any, separator: str | None = None) -> tuple[str, ...]:
    """
    Parse a source key expression into its candidate keys.

    Args:
        expression: "sn || surname", a single key, or a list/tuple of keys
        separator: Fallback separator (defaults to the configured one)

    Returns:
        Candidate keys in the order they are tried

    Raises:
        InvalidMappingError: If the expression yields no usable key
    """
    separator = separator or MAPPING["fallback_separator"]
    if isinstance(expression, str):
        candidates = [part.strip() for part in expression.split(separator)]
    elif isinstance(expression, (list, tuple)):
        candidates = list(expression)
    else:
        raise InvalidMappingError(
            f"source key expression must be a string or a list of strings, "
            f"got {type(expression).__name__}"
        )

    if not candidates or not all(isinstance(c, str) and c for c in candidates):
        raise InvalidMappingError(f"invalid source key expression: {expression!r}")
    return tuple(candidates)


def normalize_mapping(schema: Schema, spec: Mapping[str, Any], path: str = "") -> MappingSpec:
    """
    Validate a mapping specification against a schema and normalize it.

    Raises:
        InvalidMappingError: If the spec names a field the schema lacks, or
            gives a nested spec for a field without nested properties
    """
    if not isinstance(spec, Mapping):
        raise InvalidMappingError(
            f"mapping specification must be a mapping, got {type(spec).__name__}"
        )

    normalized: MappingSpec = {}
    for field_name, expression in spec.items():
        field_path = f"{path}{field_name}"
        descriptor = schema.get(field_name)
        if descriptor is None:
            raise InvalidMappingError(
                f"mapping names undeclared field '{field_path}'", field=field_path
            )
        if isinstance(expression, Mapping):
            if not descriptor.is_nested:
                raise InvalidMappingError(
                    f"nested mapping given for '{field_path}', which declares no properties",
                    field=field_path,
                )
            normalized[field_name] = normalize_mapping(
                descriptor.properties, expression, path=f"{field_path}."
            )
        else:
            try:
                normalized[field_name] = parse_source(expression)
            except InvalidMappingError as e:
                raise InvalidMappingError(f"{field_path}: {e}", field=field_path) from e
    return normalized


def restrict_mapping(schema: Schema, spec: MappingSpec) -> MappingSpec:
    """Drop the entries of a normalized spec that no longer fit a schema."""
    restricted: MappingSpec = {}
    for field_name, entry in spec.items():
        descriptor = schema.get(field_name)
        if descriptor is None:
            continue
        if isinstance(entry, Mapping):
            if descriptor.is_nested:
                restricted[field_name] = restrict_mapping(descriptor.properties, entry)
        else:
            restricted[field_name] = entry
    return restricted


def freeze_mapping(spec: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view of a normalized spec, nested specs included."""
    return MappingProxyType({
        field_name: freeze_mapping(entry) if isinstance(entry, Mapping) else entry
        for field_name, entry in spec.items()
    })


# =============================================================================
# RESOLUTION
# =============================================================================

def _identity_value(descriptor: FieldDescriptor, value: Any) -> Any:
    # Nested objects keep only their declared sub-fields
    if descriptor.is_nested and isinstance(value, Mapping):
        return _resolve_identity(descriptor.properties, value)
    # Records never share containers with their input
    return copy.deepcopy(value)


def _resolve_identity(schema: Schema, raw: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field_name, descriptor in schema.items():
        value = raw.get(field_name)
        if value is not None:
            values[field_name] = _identity_value(descriptor, value)
    return values


def _resolve_mapped(schema: Schema, raw: Mapping[str, Any], spec: MappingSpec) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field_name, descriptor in schema.items():
        entry = spec.get(field_name)

        if entry is None:
            if descriptor.type is FieldType.OBJECT and raw.get(field_name) is not None:
                values[field_name] = _identity_value(descriptor, raw[field_name])
            continue

        if isinstance(entry, Mapping):
            nested = _resolve_mapped(descriptor.properties, raw, entry)
            if nested:
                values[field_name] = nested
            continue

        # First candidate whose key exists wins, whatever its value
        source = next((candidate for candidate in entry if candidate in raw), None)
        if source is None:
            logger.debug(f"No source key among {entry} for '{field_name}'")
            continue
        if source != entry[0]:
            logger.debug(f"'{field_name}' resolved from fallback key '{source}'")
        if raw[source] is not None:
            values[field_name] = _identity_value(descriptor, raw[source])
    return values


def resolve_values(
    schema: Schema,
    raw: Mapping[str, Any],
    spec: MappingSpec | None = None,
) -> dict[str, Any]:
    """
    Compute the field values of a record from raw input data.

    Without a spec every field is read under its own name. With a spec,
    mapped fields are read through their source key expressions, object
    fields without an entry fall back to their own name, and other
    unmapped fields stay unset. Unknown input keys are ignored and
    missing ones leave the field unset; required-ness is a validation
    concern.

    Args:
        schema: Resolved schema of the target type
        raw: Input data
        spec: Normalized mapping specification, or None for identity

    Returns:
        New dict of field name to value, containing only set fields;
        container values are deep copies of the input's
    """
    if spec is None:
        return _resolve_identity(schema, raw)
    return _resolve_mapped(schema, raw, spec)
