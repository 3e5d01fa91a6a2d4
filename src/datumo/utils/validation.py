"""
Validation Engine

Checks required-ness, type and format of a record's values against its
schema. Problems are collected and returned, never raised: a record may be
held in a partially valid state (e.g., while a form is being filled) and
only ``assert_valid()`` turns the collected problems into an exception.

Order is deterministic: schema declaration order, depth first into
nested object fields, whose errors carry the dotted parent path.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from datumo.errors import (
    FieldValidationError,
    FormatViolationError,
    MissingRequiredFieldError,
    RecordValidationError,
    TypeMismatchError,
)
from datumo.schemas.base import Schema
from datumo.utils.checks import describe_type

logger = logging.getLogger(__name__)


class Checker(Protocol):
    """What the validation engine needs from a type/format checker."""

    def matches_type(self, value: Any, type_tag: str) -> bool: ...

    def check_format(self, value: str, format_tag: str) -> bool: ...


def validate_values(
    schema: Schema,
    values: Mapping[str, Any],
    checker: Checker,
    prefix: str = "",
) -> list[FieldValidationError]:
    """
    Validate a field-value mapping against a schema.

    Args:
        schema: Schema to validate against
        values: Current field values (absent or None means unset)
        checker: Type and format checker
        prefix: Dotted path of the enclosing object field, if any

    Returns:
        Ordered list of problems; empty when the values are valid
    """
    errors: list[FieldValidationError] = []

    for field_name, descriptor in schema.items():
        path = f"{prefix}{field_name}"
        value = values.get(field_name)

        if value is None:
            if descriptor.required:
                errors.append(MissingRequiredFieldError(path))
            continue

        if not checker.matches_type(value, descriptor.type.value):
            errors.append(TypeMismatchError(path, descriptor.type.value, describe_type(value)))
            continue

        if descriptor.format and isinstance(value, str):
            if not checker.check_format(value, descriptor.format):
                errors.append(FormatViolationError(path, descriptor.format))

        if descriptor.is_nested:
            errors.extend(
                validate_values(descriptor.properties, value, checker, prefix=f"{path}.")
            )

    return errors


def check_record(
    model_name: str,
    schema: Schema,
    values: Mapping[str, Any],
    checker: Checker,
) -> list[FieldValidationError]:
    """Validate a record's values and log a summary."""
    errors = validate_values(schema, values, checker)
    if errors:
        logger.debug(
            f"{model_name} has {len(errors)} validation error(s): "
            f"{[e.path for e in errors]}"
        )
    return errors


def raise_for_errors(model_name: str, errors: list[FieldValidationError]) -> None:
    """
    Turn collected problems into a RecordValidationError.

    Raises:
        RecordValidationError: If errors is not empty
    """
    if errors:
        logger.error(f"{model_name} failed validation: {[e.to_dict() for e in errors]}")
        raise RecordValidationError(model_name, errors)
