"""
Enum declaration compiler.

Compiling a declaration is a pure step:

    declaration -> mapping -> bound field/validator -> accessor bundle

Installing the compiled enum is the only step that touches a document
class. It registers the backing field and validator, then sets the
generated class attributes (constant, mapping, enum class, alias
property, predicates, setters, and scopes). Every name is checked before
anything is changed, so a rejected declaration leaves the class as it was.

Example:
    >>> class User(Document):
    ...     pass
    >>> declare_enum(User, "status", ["awaiting_approval", "approved", "banned"])
    >>> User.STATUS
    ('awaiting_approval', 'approved', 'banned')
    >>> User.statuses["approved"]
    1
    >>> user = User()
    >>> user.set_banned().is_banned()
    True
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import ValidationError

from docenum.errors import DeclarationContext, InvalidDeclarationError
from docenum.runtime.accessors import AccessorBundle, generate_accessors
from docenum.runtime.binder import BoundField, bind_field
from docenum.runtime.document import INSTANCE_ATTRIBUTES, Document
from docenum.runtime.logging import log_with_context
from docenum.runtime.mapping import EnumMapping, build_mapping
from docenum.specs.enum_spec import EnumDeclaration

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=type[Document])

# Marks an omitted ``default`` (None is a legitimate explicit default)
_MISSING: Any = object()


# =============================================================================
# Compiled Enum
# =============================================================================


@dataclass(frozen=True)
class CompiledEnum:
    """Everything generated from one declaration, ready to install."""

    declaration: EnumDeclaration
    mapping: EnumMapping
    field: BoundField
    accessors: AccessorBundle

    @property
    def alias(self) -> str:
        return self.declaration.alias

    @property
    def field_name(self) -> str:
        return self.field.name

    @property
    def multiple(self) -> bool:
        return self.declaration.multiple

    def class_attributes(self) -> dict[str, Any]:
        """Generated class attributes keyed by name, in installation order."""
        bundle = self.accessors
        attributes: dict[str, Any] = {
            self.mapping.constant_name: self.mapping.values,
            self.mapping.mapping_name: self.mapping.indices,
            self.mapping.enum_class_name: self.mapping.enum_class,
            self.alias: property(bundle.getter, bundle.setter, doc=bundle.getter.__doc__),
            bundle.predicate_name: bundle.predicate,
        }
        for entry in bundle.values.values():
            attributes[entry.setter_name] = entry.setter
            attributes[entry.predicate_name] = entry.predicate
            attributes[entry.scope_name] = classmethod(entry.scope)
        return attributes

    def generated_names(self) -> list[str]:
        """Every generated attribute name, duplicates included."""
        bundle = self.accessors
        names = [
            self.mapping.constant_name,
            self.mapping.mapping_name,
            self.mapping.enum_class_name,
            self.alias,
            bundle.predicate_name,
        ]
        for entry in bundle.values.values():
            names.extend((entry.setter_name, entry.predicate_name, entry.scope_name))
        return names


# =============================================================================
# Compilation
# =============================================================================


def compile_enum(declaration: EnumDeclaration) -> CompiledEnum:
    """
    Compile a declaration into its mapping, field, and accessors.

    Raises:
        InvalidDeclarationError: If the declaration generates the same
            attribute name twice (e.g. a value named like the alias)
    """
    mapping = build_mapping(declaration.alias, declaration.values)
    field = bind_field(declaration, mapping)
    accessors = generate_accessors(declaration, mapping, field)
    compiled = CompiledEnum(
        declaration=declaration,
        mapping=mapping,
        field=field,
        accessors=accessors,
    )

    seen: set[str] = set()
    clashes = []
    for name in compiled.generated_names():
        if name in seen:
            clashes.append(name)
        seen.add(name)
    if clashes:
        raise InvalidDeclarationError(
            f"Enum '{declaration.alias}' generates conflicting names: {', '.join(clashes)}"
        )

    logger.debug(
        "Compiled enum '%s' (%s, %d values)",
        declaration.alias,
        "multiple" if declaration.multiple else "single",
        len(mapping),
    )
    return compiled


# =============================================================================
# Installation
# =============================================================================


def _descendants(document_cls: type[Document]) -> Iterator[type[Document]]:
    for subclass in document_cls.__subclasses__():
        yield subclass
        yield from _descendants(subclass)


def _check_installable(document_cls: type[Document], compiled: CompiledEnum) -> None:
    context = DeclarationContext(document_cls.__name__, compiled.alias)
    owner = document_cls.enum_owner(compiled.alias)
    if owner is not None and owner is not document_cls:
        raise InvalidDeclarationError(
            f"Enum '{compiled.alias}' is inherited from {owner.__name__}; "
            f"redeclare it there",
            context,
        )

    previous = document_cls.own_enums().get(compiled.alias)
    previous_names = set(previous.generated_names()) if previous else set()

    owners: dict[str, str] = {}
    for alias, other in document_cls.enums.items():
        if alias == compiled.alias:
            continue
        for name in other.generated_names():
            owners[name] = alias
        owners[other.field_name] = alias

    for name in compiled.generated_names():
        if name in owners:
            raise InvalidDeclarationError(
                f"Generated name '{name}' is already used by enum '{owners[name]}'", context
            )
        if name not in previous_names and (
            hasattr(document_cls, name) or name in INSTANCE_ATTRIBUTES
        ):
            raise InvalidDeclarationError(
                f"Generated name '{name}' would shadow an existing attribute", context
            )

    field_name = compiled.field_name
    if field_name in owners:
        raise InvalidDeclarationError(
            f"Backing field '{field_name}' is already used by enum '{owners[field_name]}'",
            context,
        )
    previous_field = previous.field_name if previous else None
    if field_name in document_cls.fields and field_name != previous_field:
        raise InvalidDeclarationError(
            f"Backing field '{field_name}' is already registered", context
        )

    # Subclasses inherit the new surface, so it must not collide with theirs
    for subclass in _descendants(document_cls):
        if compiled.alias in subclass.own_enums():
            raise InvalidDeclarationError(
                f"Enum '{compiled.alias}' is already declared on subclass {subclass.__name__}",
                context,
            )
        for name in compiled.generated_names():
            if name not in previous_names and name in vars(subclass):
                raise InvalidDeclarationError(
                    f"Generated name '{name}' is already defined on subclass "
                    f"{subclass.__name__}",
                    context,
                )
        if field_name != previous_field and field_name in vars(subclass)["_own_fields"]:
            raise InvalidDeclarationError(
                f"Backing field '{field_name}' is already registered on subclass "
                f"{subclass.__name__}",
                context,
            )


def _uninstall(document_cls: type[Document], compiled: CompiledEnum) -> None:
    for name in compiled.generated_names():
        if name in vars(document_cls):
            delattr(document_cls, name)
    document_cls.unregister_field(compiled.field_name)
    document_cls.remove_validators(compiled.field_name)
    document_cls.unregister_enum(compiled.alias)


def install_enum(document_cls: DocumentT, compiled: CompiledEnum) -> DocumentT:
    """
    Install a compiled enum on a document class.

    Re-installing an alias on the class that declared it replaces the
    previous declaration's surface; subclasses see the change immediately.

    Raises:
        InvalidDeclarationError: If the target is not a Document class, the
            alias is inherited, or a generated name clashes with an existing
            attribute here or on a subclass
    """
    if not (isinstance(document_cls, type) and issubclass(document_cls, Document)):
        raise InvalidDeclarationError(
            f"Enums can only be declared on Document subclasses, got {document_cls!r}"
        )

    _check_installable(document_cls, compiled)

    previous = document_cls.own_enums().get(compiled.alias)
    if previous is not None:
        _uninstall(document_cls, previous)
        logger.info("Redefining enum %s.%s", document_cls.__name__, compiled.alias)

    document_cls.register_field(compiled.field.field)
    if compiled.field.validator is not None:
        document_cls.validates_with(compiled.field.validator)
    for name, attribute in compiled.class_attributes().items():
        setattr(document_cls, name, attribute)
    document_cls.register_enum(compiled)

    log_with_context(
        logger,
        logging.DEBUG,
        f"Installed enum {document_cls.__name__}.{compiled.alias}",
        field=compiled.field_name,
        values=list(compiled.mapping.values),
        multiple=compiled.multiple,
    )
    return document_cls


def declare_enum(
    document_cls: DocumentT,
    alias: str,
    values: Any,
    *,
    multiple: bool = False,
    default: Any = _MISSING,
    required: bool = True,
    validate: bool = True,
    field_prefix: str | None = None,
) -> CompiledEnum:
    """
    Declare an enumerated attribute on a document class.

    Args:
        document_cls: Document subclass receiving the enum
        alias: Public attribute name (e.g. "status")
        values: Ordered values; strings or members of a str-valued Enum
        multiple: Hold a duplicate-free list of values instead of one
        default: Explicit default (omit for first value / empty list)
        required: Whether an unset single value fails validation
        validate: Whether to bind a validator at all
        field_prefix: Backing field prefix (DOCENUM_FIELD_PREFIX when None)

    Returns:
        The installed CompiledEnum

    Raises:
        InvalidDeclarationError: If the declaration is invalid or clashes
    """
    options: dict[str, Any] = {
        "alias": alias,
        "values": values,
        "multiple": multiple,
        "required": required,
        "validates": validate,
    }
    if default is not _MISSING:
        options["default"] = default
    if field_prefix is not None:
        options["field_prefix"] = field_prefix

    context = DeclarationContext(getattr(document_cls, "__name__", repr(document_cls)), str(alias))
    try:
        declaration = EnumDeclaration(**options)
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        raise InvalidDeclarationError(messages, context) from e

    try:
        compiled = compile_enum(declaration)
    except InvalidDeclarationError as e:
        if e.context is not None:
            raise
        raise InvalidDeclarationError(e.message, context) from e

    install_enum(document_cls, compiled)
    return compiled


def enum_field(alias: str, values: Any, **options: Any) -> Callable[[DocumentT], DocumentT]:
    """
    Class decorator form of ``declare_enum``.

    Example:
        @enum_field("roles", ["author", "editor", "admin"], multiple=True, default=[])
        @enum_field("status", ["awaiting_approval", "approved", "banned"])
        class User(Document):
            pass
    """

    def decorator(document_cls: DocumentT) -> DocumentT:
        declare_enum(document_cls, alias, values, **options)
        return document_cls

    return decorator
