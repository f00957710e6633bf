"""
Specification types for docenum.

This module exports the declaration and field specification types.
"""

from docenum.specs.enum_spec import EnumDeclaration, normalize_values, to_token
from docenum.specs.field import FieldKind, FieldSpec

__all__ = [
    # Enum declarations
    "EnumDeclaration",
    "normalize_values",
    "to_token",
    # Fields
    "FieldKind",
    "FieldSpec",
]
