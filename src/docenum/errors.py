"""
Error types for enum declaration, document construction, and persistence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docenum.runtime.validators import Errors


class DocEnumError(Exception):
    """Base exception for all docenum errors."""

    def __init__(self, message: str, context: DeclarationContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class InvalidDeclarationError(DocEnumError):
    """
    Raised when an enum declaration cannot be compiled or installed.

    Examples:
    - Empty or duplicate values
    - Values that are not usable identifiers
    - Default whose type does not match the multiple/single mode
    - Generated names clashing with another declaration
    """

    pass


class UnknownAttributeError(DocEnumError):
    """Raised when a document is given an attribute it does not declare."""

    pass


class DocumentNotFoundError(DocEnumError):
    """Raised when a document id does not resolve to a stored row."""

    pass


class DocumentInvalidError(DocEnumError):
    """
    Raised by strict saves when the document fails validation.

    The accumulated field errors stay available on ``errors``.
    """

    def __init__(self, errors: Errors, context: DeclarationContext | None = None):
        self.errors = errors
        messages = "; ".join(errors.full_messages()) or "document is invalid"
        super().__init__(f"Validation failed: {messages}", context)


@dataclass(frozen=True)
class DeclarationContext:
    """
    Where a declaration or document error originated.

    Attributes:
        document: Name of the document class
        alias: Enum alias being declared, if any
    """

    document: str
    alias: str | None = None

    def format(self) -> str:
        """
        Format the context as a short location string.

        Returns:
            Formatted string like: "User.status"
        """
        if self.alias:
            return f"{self.document}.{self.alias}"
        return self.document
