"""
Walk through the model layer end to end.

Declares a Person type, fills records directly and from raw data,
derives OfflinePerson/Friend types and copies a record between them.

Run with: python scripts/demo_models.py
"""

import logging
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# datumo reads its settings at import time
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

from datumo import Model, UndeclaredFieldError, metadata  # noqa: E402


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


class OfflinePerson(Person.exclude("email")):
    pass


class Friend(Person.subset("givenName", "email")):
    pass


def show(title, record):
    print(f"\n--- {title} ---")
    print(record.to_json(indent=2))
    errors = record.validate()
    if errors:
        for error in errors:
            print(f"  ! {error}")
    else:
        print("  valid")


def main():
    print("=== Person schema ===")
    for name, descriptor in Person.schema.items():
        print(f"{name}: {descriptor.model_dump(mode='json', exclude_none=True)}")

    amanda = Person()
    amanda.givenName = "Amanda"
    amanda.familyName = "Bryson"
    amanda.email = "amanda@example.com"

    try:
        amanda.isBurglar = True
    except UndeclaredFieldError as e:
        print(f"\nRejected: {e}")

    show("amanda", amanda)

    joyce = Person({"givenName": "Joyce", "familyName": "Ansari", "doesntLike": "cheesecake"})
    show("joyce (unknown input key ignored)", joyce)

    jeff = Person({"givenName": "Jeff", "email": "not-an-email"})
    show("jeff (incomplete)", jeff)

    conway = Person({"cn": "Lynn", "surname": "Conway"}, mapping="ldap")
    show("conway (from ldap)", conway)
    print(f"  provenance: {dict(metadata(conway))}")

    print(f"\nWorker fields: {list(Worker.schema)}")
    print(f"OfflinePerson fields: {list(OfflinePerson.schema)}")
    print(f"Friend fields: {list(Friend.schema)}")

    show("offline amanda", OfflinePerson(amanda))
    show("friend amanda", Friend(amanda))


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    main()
