"""
Model base class.

Concrete record types declare a field table; derived types are produced
by exclude()/subset() rather than by hand-written subclassing:

    class Person(Model):
        fields = {
            "givenName": {"type": "string", "required": True},
            "familyName": {"type": "string", "required": True},
            "email": {"type": "string", "format": "email"},
        }
        mappings = {"ldap": {"familyName": "sn || surname"}}

    class Worker(Person, extend=True):
        fields = {"position": {"type": "string", "required": True}}

    Friend = Person.subset("givenName", "email")

Instances are sealed: only declared fields can be written. Everything an
instance does (mapping, sealing, validation, serialization) is driven by
the resolved schema of its type, so derived types need no code of their
own.
"""

import json
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from datumo.errors import (
    FieldValidationError,
    InvalidMappingError,
    SchemaDefinitionError,
    UndeclaredFieldError,
    UnknownMappingError,
)
from datumo.mapping import (
    MappingSpec,
    freeze_mapping,
    normalize_mapping,
    resolve_values,
    restrict_mapping,
)
from datumo.schemas import derivation
from datumo.schemas.base import FieldDescriptor, normalize_schema
from datumo.schemas.resolver import DECLARATION_ATTR, SchemaDeclaration, resolve_schema
from datumo.serializer import serialize_values
from datumo.utils.checks import default_checker
from datumo.utils.validation import check_record, raise_for_errors

logger = logging.getLogger(__name__)

MAPPINGS_ATTR = "__datumo_mappings__"

# Per-type bookkeeping a derived type gets fresh from ModelMeta
_TYPE_INTERNALS = frozenset({
    "__module__",
    "__qualname__",
    "__doc__",
    "__slots__",
    "__dict__",
    "__weakref__",
    "__annotations__",
    "__annotate__",
    "__annotate_func__",
    "__annotations_cache__",
    "__static_attributes__",
    "__firstlineno__",
    "__classcell__",
    "__derivation__",
    DECLARATION_ATTR,
    MAPPINGS_ATTR,
})


class ModelMeta(type):
    """
    Metaclass for Model.

    Pops the ``fields`` and ``mappings`` declarations out of the class body
    (so they never become instance-visible attributes), records the schema
    declaration, resolves the schema and builds the named mapping table.
    ``schema`` and ``mappings`` are exposed as type-level properties.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        extend: bool = False,
        **kwargs: Any,
    ) -> "ModelMeta":
        declared_fields = namespace.pop("fields", None)
        declared_mappings = namespace.pop("mappings", None)
        # Instances keep their state in Model's slots only
        namespace.setdefault("__slots__", ())
        namespace.setdefault("__derivation__", None)

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        parent = next((base for base in cls.__mro__[1:] if isinstance(base, ModelMeta)), None)
        if extend and parent is None:
            raise SchemaDefinitionError(name, "extend=True requires a model base class")

        fields = None
        if declared_fields is not None:
            fields = normalize_schema(name, declared_fields)
        setattr(cls, DECLARATION_ATTR, SchemaDeclaration(fields=fields, extend=extend, parent=parent))

        schema = resolve_schema(cls)
        mcs._check_reserved(cls, schema)
        setattr(cls, MAPPINGS_ATTR, mcs._build_mappings(cls, parent, schema, declared_mappings))
        return cls

    def __init__(
        cls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        extend: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, bases, namespace, **kwargs)

    @staticmethod
    def _check_reserved(cls: type, schema: Mapping[str, FieldDescriptor]) -> None:
        for field_name in schema:
            if any(field_name in klass.__dict__ for klass in cls.__mro__):
                raise SchemaDefinitionError(
                    cls.__name__,
                    f"field '{field_name}' collides with a class attribute of the same name",
                )

    @staticmethod
    def _build_mappings(
        cls: type,
        parent: type | None,
        schema: Mapping[str, FieldDescriptor],
        declared: Mapping[str, Any] | None,
    ) -> dict[str, MappingSpec]:
        table: dict[str, MappingSpec] = {}
        if parent is not None:
            for mapping_name, spec in parent.__dict__[MAPPINGS_ATTR].items():
                table[mapping_name] = restrict_mapping(schema, spec)

        if declared is None:
            return table
        if not isinstance(declared, Mapping):
            raise SchemaDefinitionError(
                cls.__name__, f"'mappings' must be a mapping, got {type(declared).__name__}"
            )
        for mapping_name, spec in declared.items():
            try:
                table[mapping_name] = normalize_mapping(schema, spec)
            except InvalidMappingError as e:
                raise SchemaDefinitionError(cls.__name__, f"mapping '{mapping_name}': {e}") from e
        return table

    @property
    def schema(cls) -> Mapping[str, FieldDescriptor]:
        """Resolved schema of this type (read-only)."""
        return resolve_schema(cls)

    @property
    def mappings(cls) -> Mapping[str, MappingSpec]:
        """Named mapping specifications of this type (read-only, nested specs too)."""
        return MappingProxyType({
            mapping_name: freeze_mapping(spec)
            for mapping_name, spec in cls.__dict__[MAPPINGS_ATTR].items()
        })


class Model(metaclass=ModelMeta):
    """
    Root of every model type. Its own schema is empty.

    Args:
        data: Raw input (a mapping, or another record whose serialized
            form is used). Unknown keys are ignored.
        mapping: Name of a declared mapping, or an ad hoc mapping spec

    Raises:
        UnknownMappingError: If a mapping name is not declared
        InvalidMappingError: If an ad hoc mapping spec is malformed
    """

    __slots__ = ("_values", "_metadata")

    fields = {}
    checker: ClassVar[Any] = default_checker

    def __init__(
        self,
        data: "Mapping[str, Any] | Model | None" = None,
        *,
        mapping: str | Mapping[str, Any] | None = None,
    ) -> None:
        cls = type(self)
        schema = cls.schema
        source_type = None

        if isinstance(data, Model):
            source_type = type(data).__name__
            data = data.serialize()
        elif data is None:
            data = {}
        elif not isinstance(data, Mapping):
            raise TypeError(
                f"{cls.__name__} expects a mapping or a record, got {type(data).__name__}"
            )

        mapping_name = None
        spec = None
        if isinstance(mapping, str):
            mapping_name = mapping
            try:
                spec = cls.__dict__[MAPPINGS_ATTR][mapping]
            except KeyError:
                raise UnknownMappingError(cls.__name__, mapping) from None
        elif mapping is not None:
            spec = normalize_mapping(schema, mapping)

        object.__setattr__(self, "_values", resolve_values(schema, data, spec))
        object.__setattr__(self, "_metadata", {
            "mapping": spec,
            "mapping_name": mapping_name,
            "source_type": source_type,
        })

    # -------------------------------------------------------------------------
    # Sealed attribute surface
    # -------------------------------------------------------------------------

    def _require_declared(self, name: str) -> None:
        if name not in type(self).schema:
            logger.warning(f"Rejected write to undeclared field '{name}' on {type(self).__name__}")
            raise UndeclaredFieldError(type(self).__name__, name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails, i.e. for field names
        if not name.startswith("_") and name in type(self).schema:
            return self._values.get(name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        self._require_declared(name)
        if value is None:
            self._values.pop(name, None)
        else:
            self._values[name] = value

    def __delattr__(self, name: str) -> None:
        self._require_declared(name)
        self._values.pop(name, None)

    def __getitem__(self, name: str) -> Any:
        if name not in type(self).schema:
            raise KeyError(name)
        return self._values.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.__setattr__(name, value)

    def __delitem__(self, name: str) -> None:
        self.__delattr__(name)

    def __contains__(self, name: object) -> bool:
        """True when the field is declared and currently set."""
        return name in self._values

    def __dir__(self) -> list[str]:
        public = {name for name in dir(type(self)) if not name.startswith("_")}
        return sorted(public | set(type(self).schema))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return type(self) is type(other) and self._values == other._values

    __hash__ = None

    # copy, deepcopy and pickle restore slots through __setstate__, which
    # bypasses the sealed __setattr__
    def __getstate__(self) -> dict[str, Any]:
        return {"values": self._values, "metadata": self._metadata}

    def __setstate__(self, state: Mapping[str, Any]) -> None:
        object.__setattr__(self, "_values", dict(state["values"]))
        object.__setattr__(self, "_metadata", dict(state["metadata"]))

    def __repr__(self) -> str:
        parts = [
            f"{name}={self._values[name]!r}"
            for name in type(self).schema
            if name in self._values
        ]
        return f"{type(self).__name__}({', '.join(parts)})"

    # -------------------------------------------------------------------------
    # Validation and serialization
    # -------------------------------------------------------------------------

    def validate(self) -> list[FieldValidationError]:
        """
        Check required, type and format constraints.

        Returns:
            Ordered list of problems; empty when the record is valid
        """
        cls = type(self)
        return check_record(cls.__name__, resolve_schema(cls), self._values, cls.checker)

    def is_valid(self) -> bool:
        return not self.validate()

    def assert_valid(self) -> "Model":
        """
        Return the record itself if valid.

        Raises:
            RecordValidationError: Carrying every problem found
        """
        raise_for_errors(type(self).__name__, self.validate())
        return self

    def serialize(self) -> dict[str, Any]:
        """Plain dict of the declared fields that currently hold a value."""
        return serialize_values(resolve_schema(type(self)), self._values)

    def to_json(self, **kwargs: Any) -> str:
        """Serialize and encode as JSON (kwargs go to json.dumps)."""
        return json.dumps(self.serialize(), **kwargs)

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    @classmethod
    def exclude(cls, *names: str) -> ModelMeta:
        """
        New model type without the named fields.

        Raises:
            DerivationError: If a name is not in this type's schema
        """
        return cls._derive("exclude", derivation.exclude(cls.schema, names, model_name=cls.__name__), names)

    @classmethod
    def subset(cls, *names: str) -> ModelMeta:
        """
        New model type with only the named fields.

        Raises:
            DerivationError: If a name is not in this type's schema
        """
        return cls._derive("subset", derivation.subset(cls.schema, names, model_name=cls.__name__), names)

    @classmethod
    def _derive(cls, operator: str, schema: dict[str, FieldDescriptor], names: tuple[str, ...]) -> ModelMeta:
        derived_name = f"{cls.__name__}_{operator}_{'_'.join(names)}" if names else f"{cls.__name__}_{operator}"
        namespace = cls._behavior()
        namespace.update({
            "__module__": cls.__module__,
            "__qualname__": derived_name,
            "__derivation__": (cls, operator, tuple(names)),
            "fields": schema,
            "mappings": {
                mapping_name: restrict_mapping(schema, spec)
                for mapping_name, spec in cls.__dict__[MAPPINGS_ATTR].items()
            },
            "checker": cls.checker,
        })
        derived = ModelMeta(derived_name, (Model,), namespace)
        logger.debug(f"Derived {derived_name} from {cls.__name__}: {list(schema)}")
        return derived

    @classmethod
    def _behavior(cls) -> dict[str, Any]:
        """Class attributes this type defines or inherits from outside Model."""
        namespace: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            if klass in Model.__mro__:
                continue
            for name, value in klass.__dict__.items():
                if name not in _TYPE_INTERNALS:
                    namespace[name] = value
        return namespace


def metadata(record: Model) -> Mapping[str, Any]:
    """
    Reflective view of a record's out-of-band metadata.

    Holds provenance such as the mapping the record was built with; never
    part of the record's fields, attribute listing or serialized form.
    """
    if not isinstance(record, Model):
        raise TypeError(f"expected a model record, got {type(record).__name__}")
    view = dict(object.__getattribute__(record, "_metadata"))
    if view["mapping"] is not None:
        view["mapping"] = freeze_mapping(view["mapping"])
    return MappingProxyType(view)
