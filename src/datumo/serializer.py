"""
Serializer

Produces the plain structured form of a record: declared fields that
hold a value, under their declared names, recursing into nested object
fields. Unset fields are omitted rather than emitted as null. Record
metadata lives outside the field values and is never reached from here.
Output never shares containers with the record it came from.
"""

import copy
from collections.abc import Mapping
from typing import Any

from datumo.schemas.base import Schema


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return copy.deepcopy(value)


def serialize_values(schema: Schema, values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Serialize a field-value mapping through a schema.

    Args:
        schema: Schema deciding which fields are emitted
        values: Current field values (absent or None means unset)

    Returns:
        New dict holding only set, declared fields
    """
    output: dict[str, Any] = {}
    for field_name, descriptor in schema.items():
        value = values.get(field_name)
        if value is None:
            continue
        if descriptor.is_nested and isinstance(value, Mapping):
            output[field_name] = serialize_values(descriptor.properties, value)
        else:
            output[field_name] = _plain(value)
    return output
