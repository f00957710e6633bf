"""
Field & validation binder.

Derives the backing field spec and validator for an enum declaration:

- single mode: a SYMBOL field checked by InclusionValidator
- multiple mode: an ARRAY field checked by MultipleValidator

Default policy: without an explicit default, single mode starts at the
first declared value and multiple mode starts as an empty list. An explicit
default is used verbatim; it is only checked against the values when a
document is validated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from docenum.errors import InvalidDeclarationError
from docenum.runtime.mapping import EnumMapping
from docenum.runtime.validators import FieldValidator, InclusionValidator, MultipleValidator
from docenum.specs.enum_spec import EnumDeclaration
from docenum.specs.field import FieldKind, FieldSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundField:
    """Backing field and its validator (None when validation is disabled)."""

    field: FieldSpec
    validator: FieldValidator | None

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def is_array(self) -> bool:
        return self.field.is_array


def _resolve_default(declaration: EnumDeclaration, mapping: EnumMapping) -> object:
    if declaration.has_explicit_default:
        return declaration.default
    if declaration.multiple:
        return []
    return mapping.first


def bind_field(declaration: EnumDeclaration, mapping: EnumMapping) -> BoundField:
    """
    Build the backing field and validator for a declaration.

    Args:
        declaration: The enum declaration
        mapping: Mapping built from the same declaration

    Returns:
        BoundField ready to be registered on a document class
    """
    if mapping.alias != declaration.alias or mapping.values != declaration.values:
        raise InvalidDeclarationError(
            f"Mapping for '{mapping.alias}' does not belong to enum '{declaration.alias}'"
        )

    field_name = declaration.field_name
    kind = FieldKind.ARRAY if declaration.multiple else FieldKind.SYMBOL
    field = FieldSpec(
        name=field_name,
        kind=kind,
        default=_resolve_default(declaration, mapping),
        required=declaration.required,
        label=declaration.alias,
    )

    validator: FieldValidator | None
    if not declaration.validates:
        validator = None
    elif declaration.multiple:
        validator = MultipleValidator(field_name, mapping.values)
    else:
        validator = InclusionValidator(
            field_name,
            mapping.values,
            allow_nil=not declaration.required,
        )

    logger.debug(
        "Bound field %s (%s, default=%r, validator=%r)",
        field_name,
        kind.value,
        field.default,
        validator,
    )
    return BoundField(field=field, validator=validator)
