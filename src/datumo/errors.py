"""
Datumo Errors

Two families live here:

- Fatal errors, raised at the point of misuse (bad derivation name,
  unknown mapping name, write to an undeclared attribute).
- Field validation errors, collected by ``Model.validate()`` and
  returned rather than raised, so partially filled records can be held.
"""

from typing import Any


class DatumoError(Exception):
    """Base class for every error raised by datumo."""


# =============================================================================
# DEFINITION-TIME ERRORS
# =============================================================================

class SchemaDefinitionError(DatumoError, TypeError):
    """Raised when a model type declares an invalid schema or mapping table."""

    def __init__(self, model_name: str, message: str) -> None:
        super().__init__(f"{model_name}: {message}")
        self.model_name = model_name


class DerivationError(SchemaDefinitionError):
    """Raised when exclude()/subset() names a field the schema does not have."""

    def __init__(self, model_name: str, operator: str, missing: list[str]) -> None:
        super().__init__(
            model_name,
            f"cannot {operator} unknown field(s): {', '.join(missing)}",
        )
        self.operator = operator
        self.missing = missing


class SchemaResolutionError(DatumoError):
    """Raised when a type has no resolvable schema (structural misuse)."""

    def __init__(self, target: Any) -> None:
        super().__init__(f"No resolvable schema for {target!r}")
        self.target = target


# =============================================================================
# CONSTRUCTION / MUTATION ERRORS
# =============================================================================

class MappingError(DatumoError):
    """Base class for mapping specification problems."""


class UnknownMappingError(MappingError, KeyError):
    """Raised when a named mapping is not declared on the model type."""

    def __init__(self, model_name: str, mapping_name: str) -> None:
        super().__init__(f"{model_name} declares no mapping named '{mapping_name}'")
        self.model_name = model_name
        self.mapping_name = mapping_name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidMappingError(MappingError):
    """Raised when an ad hoc mapping specification is malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class UndeclaredFieldError(DatumoError, AttributeError):
    """
    Raised on a write to a name that is not in the model's schema.

    Records are sealed: they never accumulate ad hoc state.
    """

    def __init__(self, model_name: str, field: str) -> None:
        super().__init__(f"'{field}' is not a declared field of {model_name}")
        self.model_name = model_name
        self.field = field


# =============================================================================
# VALIDATION ERRORS (collected, not raised)
# =============================================================================

class FieldValidationError(DatumoError):
    """A single problem found by validation, addressed by a dotted path."""

    code = "invalid"

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message

    @property
    def field(self) -> str:
        """Last segment of the path (the offending field's own name)."""
        return self.path.rsplit(".", 1)[-1]

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "code": self.code, "message": self.message}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldValidationError):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self), self.path, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, {self.message!r})"


class MissingRequiredFieldError(FieldValidationError):
    """A required field holds no value."""

    code = "missing"

    def __init__(self, path: str) -> None:
        super().__init__(path, "required field is missing")


class TypeMismatchError(FieldValidationError):
    """A field's value does not match its declared type tag."""

    code = "type"

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(path, f"expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "expected": self.expected, "actual": self.actual}


class FormatViolationError(FieldValidationError):
    """A string field's value does not satisfy its declared format."""

    code = "format"

    def __init__(self, path: str, format: str) -> None:
        super().__init__(path, f"value is not a valid {format}")
        self.format = format

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "format": self.format}


class RecordValidationError(DatumoError):
    """Raised by Model.assert_valid() when validation found problems."""

    def __init__(self, model_name: str, errors: list[FieldValidationError]) -> None:
        summary = "; ".join(str(e) for e in errors)
        super().__init__(f"{model_name} failed validation: {summary}")
        self.model_name = model_name
        self.errors = errors
