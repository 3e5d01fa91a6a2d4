"""
Shared model fixtures.

Person/Worker/Contact are the record types used across the unit and
integration suites.
"""

import pytest

from datumo import Model


class Person(Model):
    fields = {
        "givenName": {"type": "string", "required": True},
        "middleName": {"type": "string"},
        "familyName": {"type": "string", "required": True},
        "email": {"type": "string", "format": "email"},
    }
    mappings = {
        "ldap": {
            "givenName": "givenName || cn",
            "familyName": "sn || surname",
            "email": "mail",
        },
    }


class Worker(Person, extend=True):
    fields = {
        "position": {"type": "string", "required": True},
        "company": {"type": "string", "required": True},
    }


class Contact(Model):
    fields = {
        "name": {"type": "string", "required": True},
        "age": {"type": "integer"},
        "tags": {"type": "array"},
        "address": {
            "type": "object",
            "properties": {
                "street": {"type": "string"},
                "postalCode": {"type": "string", "required": True},
            },
        },
        "extra": {"type": "object"},
    }
    mappings = {
        "directory": {
            "name": "displayName || cn",
            "address": {
                "street": "streetAddress",
                "postalCode": "postalCode || zip",
            },
        },
    }


@pytest.fixture
def person_model() -> type[Person]:
    return Person


@pytest.fixture
def worker_model() -> type[Worker]:
    return Worker


@pytest.fixture
def contact_model() -> type[Contact]:
    return Contact


@pytest.fixture
def amanda() -> Person:
    """A complete, valid Person record."""
    record = Person()
    record.givenName = "Amanda"
    record.familyName = "Bryson"
    record.email = "amanda@example.com"
    return record
