"""
docenum - enumerated attributes for document models

A document class declares an alias and an ordered list of values; docenum
generates the backing field, its validator, an index mapping, per-value
setters/predicates, and per-value query scopes.

This package provides:
- Specs: EnumDeclaration and FieldSpec value objects
- Runtime: the enum compiler and the Document persistence layer
"""

__version__ = "0.3.0"

from docenum.errors import (
    DocEnumError,
    DocumentInvalidError,
    DocumentNotFoundError,
    InvalidDeclarationError,
    UnknownAttributeError,
)
from docenum.runtime import (
    CompiledEnum,
    Criteria,
    Document,
    ValidationErrorKind,
    compile_enum,
    configure_database,
    declare_enum,
    enum_field,
    install_enum,
)
from docenum.specs import EnumDeclaration, FieldKind, FieldSpec

__all__ = [
    "CompiledEnum",
    "Criteria",
    "DocEnumError",
    "Document",
    "DocumentInvalidError",
    "DocumentNotFoundError",
    "EnumDeclaration",
    "FieldKind",
    "FieldSpec",
    "InvalidDeclarationError",
    "UnknownAttributeError",
    "ValidationErrorKind",
    "compile_enum",
    "configure_database",
    "declare_enum",
    "enum_field",
    "install_enum",
]
