"""
Accessor & scope generator.

For one enum declaration, builds a dispatch table keyed by value:

- ``set_<value>()``: single mode overwrites; multiple mode appends once
- ``is_<value>()``: equality (single) or membership (multiple)
- ``<value>()`` classmethod scope: Criteria matching the value

plus the alias property (getter/setter) and the ``has_<alias>()``
predicate. Every entry is a plain function taking the document (or the
document class, for scopes) as its first argument, so the same callables
serve both as installed methods and for direct dispatch by value.

Accessors never validate: invalid values are only reported by the bound
validator when the document is validated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from docenum.runtime.binder import BoundField
from docenum.runtime.mapping import EnumMapping
from docenum.runtime.query_builder import FilterCondition, FilterOperator
from docenum.specs.enum_spec import EnumDeclaration, to_token

if TYPE_CHECKING:
    from docenum.runtime.document import Criteria, Document


# =============================================================================
# Naming
# =============================================================================


def setter_name(value: str) -> str:
    return f"set_{value}"


def predicate_name(value: str) -> str:
    return f"is_{value}"


def scope_name(value: str) -> str:
    return value


def alias_predicate_name(alias: str) -> str:
    return f"has_{alias}"


def _named(func: Callable[..., Any], name: str, doc: str) -> Callable[..., Any]:
    func.__name__ = name
    func.__qualname__ = name
    func.__doc__ = doc
    return func


# =============================================================================
# Dispatch Table
# =============================================================================


@dataclass(frozen=True)
class ValueAccessors:
    """Generated setter, predicate, and scope for one enum value."""

    value: str
    index: int
    setter: Callable[[Document], Document]
    predicate: Callable[[Document], bool]
    scope: Callable[[type[Document]], Criteria[Any]]

    @property
    def setter_name(self) -> str:
        return setter_name(self.value)

    @property
    def predicate_name(self) -> str:
        return predicate_name(self.value)

    @property
    def scope_name(self) -> str:
        return scope_name(self.value)


@dataclass(frozen=True)
class AccessorBundle:
    """Alias accessors plus the per-value dispatch table."""

    alias: str
    field_name: str
    multiple: bool
    getter: Callable[[Document], Any]
    setter: Callable[[Document, Any], None]
    predicate: Callable[[Document], bool]
    values: Mapping[str, ValueAccessors]

    @property
    def predicate_name(self) -> str:
        return alias_predicate_name(self.alias)

    def for_value(self, value: Any) -> ValueAccessors:
        """Dispatch entry for a value or enum member; KeyError if undeclared."""
        return self.values[to_token(value)]

    def set(self, document: Document, value: Any) -> Document:
        return self.for_value(value).setter(document)

    def check(self, document: Document, value: Any) -> bool:
        return self.for_value(value).predicate(document)

    def scope(self, document_cls: type[Document], value: Any) -> Criteria[Any]:
        return self.for_value(value).scope(document_cls)


# =============================================================================
# Value Normalization
# =============================================================================


def _normalize_scalar(value: Any) -> Any:
    return to_token(value)


def _normalize_multiple(value: Any) -> list[Any] | None:
    """Store any iterable as a duplicate-free list; wrap a single token."""
    if value is None:
        return None
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        items: Iterable[Any] = [value]
    else:
        items = value
    result: list[Any] = []
    for item in items:
        token = to_token(item)
        if token not in result:
            result.append(token)
    return result


# =============================================================================
# Generation
# =============================================================================


def _value_accessors(
    field_name: str, value: str, index: int, multiple: bool
) -> ValueAccessors:
    if multiple:

        def setter(document: Document) -> Document:
            current = document.read_attribute(field_name)
            if current is None:
                items = []
            elif isinstance(current, (list, tuple)):
                items = list(current)
            else:
                items = [current]
            if value not in items:
                items.append(value)
            document.write_attribute(field_name, items)
            return document

        def predicate(document: Document) -> bool:
            current = document.read_attribute(field_name)
            return isinstance(current, (list, tuple)) and value in current

        condition = FilterCondition(field=field_name, operator=FilterOperator.HAS, value=value)
        setter_doc = f"Add '{value}' to {field_name} unless already present."
        predicate_doc = f"True if {field_name} contains '{value}'."
        scope_doc = f"Documents whose {field_name} contains '{value}'."
    else:

        def setter(document: Document) -> Document:
            document.write_attribute(field_name, value)
            return document

        def predicate(document: Document) -> bool:
            return document.read_attribute(field_name) == value

        condition = FilterCondition(field=field_name, operator=FilterOperator.EQ, value=value)
        setter_doc = f"Set {field_name} to '{value}'."
        predicate_doc = f"True if {field_name} is '{value}'."
        scope_doc = f"Documents whose {field_name} is '{value}'."

    def scope(document_cls: type[Document]) -> Criteria[Any]:
        return document_cls.all().with_conditions(condition)

    return ValueAccessors(
        value=value,
        index=index,
        setter=_named(setter, setter_name(value), setter_doc),
        predicate=_named(predicate, predicate_name(value), predicate_doc),
        scope=_named(scope, scope_name(value), scope_doc),
    )


def generate_accessors(
    declaration: EnumDeclaration,
    mapping: EnumMapping,
    field: BoundField,
) -> AccessorBundle:
    """
    Generate the accessor bundle for a declaration.

    Args:
        declaration: The enum declaration
        mapping: Mapping built from the declaration
        field: Bound backing field

    Returns:
        AccessorBundle with alias accessors and the per-value dispatch table
    """
    field_name = field.name
    multiple = declaration.multiple
    alias = declaration.alias

    def getter(document: Document) -> Any:
        return document.read_attribute(field_name)

    if multiple:

        def setter(document: Document, value: Any) -> None:
            document.write_attribute(field_name, _normalize_multiple(value))

        def predicate(document: Document) -> bool:
            return bool(document.read_attribute(field_name))

    else:

        def setter(document: Document, value: Any) -> None:
            document.write_attribute(field_name, _normalize_scalar(value))

        def predicate(document: Document) -> bool:
            return document.read_attribute(field_name) is not None

    values = {
        value: _value_accessors(field_name, value, mapping.index_of(value), multiple)
        for value in mapping.values
    }

    return AccessorBundle(
        alias=alias,
        field_name=field_name,
        multiple=multiple,
        getter=_named(getter, alias, f"Current value of {field_name}."),
        setter=_named(setter, alias, f"Assign {field_name} without validation."),
        predicate=_named(
            predicate,
            alias_predicate_name(alias),
            f"True if {field_name} is {'non-empty' if multiple else 'set'}.",
        ),
        values=MappingProxyType(values),
    )
