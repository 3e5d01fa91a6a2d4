"""
Primitive type and format checks.

This is the collaborator the validation engine consults for the two
questions it does not answer itself:

    matches_type(value, type_tag) -> bool
    check_format(value, format_tag) -> bool

Format checks are delegated to pydantic (EmailStr is backed by
email-validator). Any object exposing the same two methods can be set as
a model type's ``checker``.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from ipaddress import IPv4Address, IPv6Address
from numbers import Real
from typing import Any
from uuid import UUID

from pydantic import AnyUrl, EmailStr, TypeAdapter, ValidationError

from datumo.config import FORMATS
from datumo.schemas.base import FieldType

logger = logging.getLogger(__name__)

FormatCheck = Callable[[str], bool]

# RFC 1123 host name, each label 1-63 chars, total at most 253
HOSTNAME_PATTERN = re.compile(
    r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)"
    r"(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$"
)


def adapter_check(annotation: Any) -> FormatCheck:
    """Build a format check that passes when pydantic accepts the string."""
    adapter = TypeAdapter(annotation)

    def check(value: str) -> bool:
        try:
            adapter.validate_python(value)
        except ValidationError:
            return False
        return True

    return check


def describe_type(value: Any) -> str:
    """Name the type tag a value actually has (for error messages)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return FieldType.BOOLEAN.value
    if isinstance(value, int):
        return FieldType.INTEGER.value
    if isinstance(value, Real):
        return FieldType.NUMBER.value
    if isinstance(value, str):
        return FieldType.STRING.value
    if isinstance(value, Mapping):
        return FieldType.OBJECT.value
    if isinstance(value, (list, tuple)):
        return FieldType.ARRAY.value
    return type(value).__name__


class TypeChecker:
    """
    Default type and format checker.

    Formats can be added per checker with register_format(). Unknown format
    tags are accepted (and logged once) unless DATUMO_UNKNOWN_FORMATS=reject.
    """

    def __init__(self, unknown_formats: str | None = None) -> None:
        self.unknown_formats = unknown_formats or FORMATS["unknown_policy"]
        self._warned: set[str] = set()
        url_check = adapter_check(AnyUrl)
        self._formats: dict[str, FormatCheck] = {
            "email": adapter_check(EmailStr),
            "uri": url_check,
            "url": url_check,
            "date": adapter_check(date),
            "date-time": adapter_check(datetime),
            "time": adapter_check(time),
            "uuid": adapter_check(UUID),
            "ipv4": adapter_check(IPv4Address),
            "ipv6": adapter_check(IPv6Address),
            "hostname": lambda value: HOSTNAME_PATTERN.match(value) is not None,
        }

    @property
    def formats(self) -> list[str]:
        return sorted(self._formats)

    def register_format(self, format_tag: str, check: FormatCheck) -> None:
        """Add or replace the check used for a format tag."""
        self._formats[format_tag] = check

    def matches_type(self, value: Any, type_tag: str) -> bool:
        """
        Check a value against a primitive type tag.

        Raises:
            ValueError: If the tag is not a known FieldType
        """
        tag = FieldType(type_tag)
        if tag is FieldType.ANY:
            return True
        if tag is FieldType.BOOLEAN:
            return isinstance(value, bool)
        if isinstance(value, bool):
            # bool is an int subclass but never a number here
            return False
        if tag is FieldType.STRING:
            return isinstance(value, str)
        if tag is FieldType.INTEGER:
            return isinstance(value, int)
        if tag is FieldType.NUMBER:
            return isinstance(value, Real)
        if tag is FieldType.OBJECT:
            return isinstance(value, Mapping)
        return isinstance(value, (list, tuple))

    def check_format(self, value: str, format_tag: str) -> bool:
        """Check a string against a format tag."""
        check = self._formats.get(format_tag)
        if check is None:
            if format_tag not in self._warned:
                self._warned.add(format_tag)
                logger.warning(
                    f"Unknown format '{format_tag}', policy is '{self.unknown_formats}'"
                )
            return self.unknown_formats != "reject"
        return check(value)


default_checker = TypeChecker()
