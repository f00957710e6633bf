"""
docenum runtime

This module provides:
- Mapping building (value -> index tables from ordered values)
- Field & validator binding (single and multiple enum semantics)
- Accessor & scope generation (per-value setters, predicates, scopes)
- The compiler that installs all of the above on a Document class
- The Document/Criteria persistence layer over SQLite

Example usage:
    >>> from docenum.runtime import Document, declare_enum
    >>>
    >>> class User(Document):
    ...     pass
    >>>
    >>> declare_enum(User, "status", ["awaiting_approval", "approved", "banned"])
    >>> User().status
    'awaiting_approval'
"""

from docenum.runtime.accessors import AccessorBundle, ValueAccessors, generate_accessors
from docenum.runtime.binder import BoundField, bind_field
from docenum.runtime.compiler import (
    CompiledEnum,
    compile_enum,
    declare_enum,
    enum_field,
    install_enum,
)
from docenum.runtime.document import Criteria, Document
from docenum.runtime.mapping import EnumMapping, build_mapping
from docenum.runtime.repository import (
    DatabaseManager,
    DocumentRepository,
    configure_database,
    get_database,
)
from docenum.runtime.validators import (
    Errors,
    FieldError,
    FieldValidator,
    InclusionValidator,
    MultipleValidator,
    PresenceValidator,
    ValidationErrorKind,
)

__all__ = [
    # Mapping
    "EnumMapping",
    "build_mapping",
    # Binding
    "BoundField",
    "bind_field",
    # Accessors
    "AccessorBundle",
    "ValueAccessors",
    "generate_accessors",
    # Compiler
    "CompiledEnum",
    "compile_enum",
    "install_enum",
    "declare_enum",
    "enum_field",
    # Documents
    "Document",
    "Criteria",
    "DatabaseManager",
    "DocumentRepository",
    "configure_database",
    "get_database",
    # Validation
    "Errors",
    "FieldError",
    "FieldValidator",
    "InclusionValidator",
    "MultipleValidator",
    "PresenceValidator",
    "ValidationErrorKind",
]
