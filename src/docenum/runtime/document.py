"""
Document base class - the persistence collaborator of the enum compiler.

A Document subclass owns a registry of fields and validators, instances
hold their attribute values in memory, and ``save()`` writes them to a
SQLite table named after the class. ``where()`` returns a lazy Criteria.

Example:
    >>> from docenum import Document, FieldKind, declare_enum
    >>> class Article(Document):
    ...     pass
    >>> Article.field("title", FieldKind.STR)
    >>> declare_enum(Article, "state", ["draft", "published"])
    >>> article = Article(title="Hello")
    >>> article.state
    'draft'
    >>> article.save()
    True
    >>> Article.where(_state="draft").count()
    1
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar
from uuid import UUID, uuid4

from docenum.errors import (
    DeclarationContext,
    DocumentInvalidError,
    DocumentNotFoundError,
    UnknownAttributeError,
)
from docenum.runtime.query_builder import FilterCondition, QueryBuilder, SortField
from docenum.runtime.repository import DatabaseManager, DocumentRepository, get_database
from docenum.runtime.validators import Errors, FieldValidator
from docenum.specs.field import FieldKind, FieldSpec

if TYPE_CHECKING:
    from docenum.runtime.compiler import CompiledEnum

logger = logging.getLogger(__name__)

D = TypeVar("D", bound="Document")

# Instance attributes every document sets in __init__
INSTANCE_ATTRIBUTES = frozenset({"id", "errors", "_attributes", "_persisted", "_destroyed"})


# =============================================================================
# Class Registries
# =============================================================================


class InheritedRegistry:
    """
    Read-only class registry merged along the MRO at lookup time.

    Each class stores only what it declares itself, in ``_own_<name>``.
    Reading ``cls.<name>`` combines those stores base-first, so a subclass
    sees declarations its ancestors gain after the subclass was created.
    Dict stores merge into a read-only mapping (nearest class wins); list
    stores concatenate into a tuple.
    """

    def __set_name__(self, owner: type, name: str) -> None:
        self.storage = f"_own_{name}"

    def __get__(self, instance: object, owner: type) -> Any:
        layers = [
            vars(klass)[self.storage]
            for klass in reversed(owner.__mro__)
            if self.storage in vars(klass)
        ]
        if layers and isinstance(layers[0], list):
            return tuple(item for layer in layers for item in layer)
        merged: dict[str, Any] = {}
        for layer in layers:
            merged.update(layer)
        return MappingProxyType(merged)


# =============================================================================
# Criteria
# =============================================================================


class Criteria(Generic[D]):
    """
    Lazy, restartable query over persisted documents of one class.

    Nothing touches the database until the criteria is iterated (or
    counted); every iteration runs the query again, so a criteria can be
    reused after the underlying data changes.
    """

    def __init__(
        self,
        document_cls: type[D],
        conditions: tuple[FilterCondition, ...] = (),
        sorts: tuple[SortField, ...] = (),
        limit: int | None = None,
    ):
        self.document_cls = document_cls
        self.conditions = conditions
        self.sorts = sorts
        self._limit = limit

    def _derive(self, **changes: Any) -> Criteria[D]:
        state = {
            "conditions": self.conditions,
            "sorts": self.sorts,
            "limit": self._limit,
            **changes,
        }
        return Criteria(self.document_cls, **state)

    def where(self, **filters: Any) -> Criteria[D]:
        """Narrow the criteria with ``field=value`` / ``field__op=value`` filters."""
        added = tuple(FilterCondition.parse(key, value) for key, value in filters.items())
        return self._derive(conditions=self.conditions + added)

    def with_conditions(self, *conditions: FilterCondition) -> Criteria[D]:
        """Narrow the criteria with already-built conditions."""
        return self._derive(conditions=self.conditions + conditions)

    def order_by(self, *fields: str) -> Criteria[D]:
        """Sort by fields; prefix a field with ``-`` for descending."""
        added = tuple(SortField.parse(f) for f in fields)
        return self._derive(sorts=self.sorts + added)

    def limit(self, count: int) -> Criteria[D]:
        return self._derive(limit=count)

    def _builder(self) -> QueryBuilder:
        builder = QueryBuilder(table_name=self.document_cls.table_name())
        for condition in self.conditions:
            builder.add_condition(condition)
        builder.sorts.extend(self.sorts)
        builder.set_limit(self._limit)
        return builder

    def __iter__(self) -> Iterator[D]:
        rows = self.document_cls.repository().select(self._builder())
        for row in rows:
            yield self.document_cls.instantiate(row)

    def to_list(self) -> list[D]:
        return list(self)

    def count(self) -> int:
        """Number of matching documents (ignores ``limit``)."""
        return self.document_cls.repository().count(self._builder())

    def first(self) -> D | None:
        for document in self.limit(1):
            return document
        return None

    def exists(self) -> bool:
        return self.first() is not None

    def __repr__(self) -> str:
        conditions = ", ".join(
            f"{c.field} {c.operator.value} {c.value!r}" for c in self.conditions
        )
        return f"<Criteria {self.document_cls.__name__} [{conditions}]>"


# =============================================================================
# Document
# =============================================================================


class Document:
    """
    Base class for persisted documents.

    Class-level registries (read-only, merged from the class and its
    ancestors; declarations on a subclass never leak into its parent):
        fields: Registered field specs keyed by field name
        validators: Validators run by ``validate()`` and ``save()``
        enums: Compiled enum declarations keyed by alias

    Set ``collection_name`` to store a class under a table other than its
    class name.
    """

    fields = InheritedRegistry()
    validators = InheritedRegistry()
    enums = InheritedRegistry()
    collection_name: ClassVar[str | None] = None
    _database: ClassVar[DatabaseManager | None] = None

    _own_fields: ClassVar[dict[str, FieldSpec]] = {}
    _own_validators: ClassVar[list[FieldValidator]] = []
    _own_enums: ClassVar[dict[str, CompiledEnum]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._own_fields = {}
        cls._own_validators = []
        cls._own_enums = {}

    def __init__(self, **attributes: Any):
        self.id: UUID = uuid4()
        self._attributes: dict[str, Any] = {
            name: spec.initial_value() for name, spec in self.fields.items()
        }
        self._persisted = False
        self._destroyed = False
        self.errors = Errors()

        for name, value in attributes.items():
            self._assign(name, value)

    # -------------------------------------------------------------------------
    # Class-level registration
    # -------------------------------------------------------------------------

    @classmethod
    def register_field(cls, spec: FieldSpec) -> None:
        """Register (or replace) a field on this class."""
        cls._own_fields[spec.name] = spec

    @classmethod
    def unregister_field(cls, name: str) -> None:
        cls._own_fields.pop(name, None)

    @classmethod
    def field(
        cls,
        name: str,
        kind: FieldKind = FieldKind.STR,
        default: Any = None,
        required: bool = False,
    ) -> FieldSpec:
        """Declare a plain (non-enum) field."""
        spec = FieldSpec(name=name, kind=kind, default=default, required=required)
        cls.register_field(spec)
        return spec

    @classmethod
    def validates_with(cls, validator: FieldValidator) -> None:
        """Register a validator run on validate/save."""
        cls._own_validators.append(validator)

    @classmethod
    def remove_validators(cls, field_name: str) -> None:
        """Drop every validator this class binds to a field."""
        cls._own_validators = [v for v in cls._own_validators if v.field_name != field_name]

    @classmethod
    def register_enum(cls, compiled: CompiledEnum) -> None:
        cls._own_enums[compiled.alias] = compiled

    @classmethod
    def unregister_enum(cls, alias: str) -> None:
        cls._own_enums.pop(alias, None)

    @classmethod
    def own_enums(cls) -> Mapping[str, CompiledEnum]:
        """Enums declared on this class itself, without inherited ones."""
        return MappingProxyType(cls._own_enums)

    @classmethod
    def enum_owner(cls, alias: str) -> type[Document] | None:
        """Nearest class in the MRO that declares ``alias``."""
        for klass in cls.__mro__:
            if alias in vars(klass).get("_own_enums", {}):
                return klass
        return None

    # -------------------------------------------------------------------------
    # Persistence wiring
    # -------------------------------------------------------------------------

    @classmethod
    def use_database(cls, db_manager: DatabaseManager | None) -> None:
        """Bind a database to this class and its subclasses (None unbinds)."""
        cls._database = db_manager

    @classmethod
    def database(cls) -> DatabaseManager:
        return cls._database or get_database()

    @classmethod
    def table_name(cls) -> str:
        return cls.collection_name or cls.__name__

    @classmethod
    def repository(cls) -> DocumentRepository:
        return DocumentRepository(cls.database(), cls.table_name(), cls.fields)

    @classmethod
    def instantiate(cls: type[D], row: dict[str, Any]) -> D:
        """Build a persisted document from a stored row."""
        document = cls.__new__(cls)
        document.id = UUID(row["id"])
        document._attributes = {name: row.get(name) for name in cls.fields}
        document._persisted = True
        document._destroyed = False
        document.errors = Errors()
        return document

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @classmethod
    def all(cls: type[D]) -> Criteria[D]:
        return Criteria(cls)

    @classmethod
    def where(cls: type[D], **filters: Any) -> Criteria[D]:
        return Criteria(cls).where(**filters)

    @classmethod
    def count(cls) -> int:
        return Criteria(cls).count()

    @classmethod
    def find(cls: type[D], id: UUID | str) -> D:
        """Load a document by id; DocumentNotFoundError if absent."""
        row = cls.repository().fetch(str(id))
        if row is None:
            raise DocumentNotFoundError(
                f"No document with id {id}", DeclarationContext(cls.__name__)
            )
        return cls.instantiate(row)

    @classmethod
    def create(cls: type[D], **attributes: Any) -> D:
        """Build and save a document; check ``persisted`` for the outcome."""
        document = cls(**attributes)
        document.save()
        return document

    # -------------------------------------------------------------------------
    # Attribute access
    # -------------------------------------------------------------------------

    def _assign(self, name: str, value: Any) -> None:
        if name in self.enums:
            setattr(self, name, value)
        elif name in self.fields:
            self.write_attribute(name, value)
        elif name == "id":
            self.id = value if isinstance(value, UUID) else UUID(str(value))
        else:
            raise UnknownAttributeError(
                f"Unknown attribute '{name}'", DeclarationContext(type(self).__name__)
            )

    def _check_field(self, name: str) -> None:
        if name not in self.fields:
            raise UnknownAttributeError(
                f"Unknown field '{name}'", DeclarationContext(type(self).__name__)
            )

    def read_attribute(self, name: str) -> Any:
        """Raw stored value of a field."""
        self._check_field(name)
        if name not in self._attributes:
            # Field declared on the class after this document was built
            self._attributes[name] = self.fields[name].initial_value()
        return self._attributes[name]

    def write_attribute(self, name: str, value: Any) -> None:
        """Store a raw value; nothing is validated until ``validate()``."""
        self._check_field(name)
        self._attributes[name] = value

    @property
    def attributes(self) -> dict[str, Any]:
        """Snapshot of the id and every field value."""
        return {"id": self.id, **self._attributes}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def persisted(self) -> bool:
        return self._persisted and not self._destroyed

    @property
    def new_record(self) -> bool:
        return not self._persisted

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def validate(self) -> bool:
        """Run every registered validator; failures collect in ``errors``."""
        self.errors.clear()
        for validator in self.validators:
            validator.validate(self, self.errors)
        return not self.errors

    def is_valid(self) -> bool:
        return self.validate()

    def save(self, validate: bool = True) -> bool:
        """
        Persist the document.

        Args:
            validate: Run validators first and refuse to save on failure

        Returns:
            True if saved, False if validation failed
        """
        if validate and not self.validate():
            logger.info(
                "Not saving %s %s: %s",
                type(self).__name__,
                self.id,
                "; ".join(self.errors.full_messages()),
            )
            return False

        repository = self.repository()
        updated = self._persisted and repository.update(str(self.id), self._attributes)
        if not updated:
            repository.insert(str(self.id), self._attributes)

        self._persisted = True
        self._destroyed = False
        return True

    def save_or_raise(self) -> None:
        """Persist the document, raising DocumentInvalidError on validation failure."""
        if not self.save():
            raise DocumentInvalidError(self.errors, DeclarationContext(type(self).__name__))

    def reload(self: D) -> D:
        """Replace in-memory values with the stored ones."""
        row = self.repository().fetch(str(self.id))
        if row is None:
            raise DocumentNotFoundError(
                f"No document with id {self.id}", DeclarationContext(type(self).__name__)
            )
        self._attributes = {name: row.get(name) for name in self.fields}
        self.errors.clear()
        return self

    def delete(self) -> bool:
        """Remove the stored row; True if one was deleted."""
        deleted = self.repository().delete(str(self.id))
        self._destroyed = True
        return deleted

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        parts = [f"id={self.id}", *(f"{k}={v!r}" for k, v in self._attributes.items())]
        return f"<{type(self).__name__} {' '.join(parts)}>"
