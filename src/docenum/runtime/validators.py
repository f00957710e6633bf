"""
Field validators and the validation error collection.

Validators run when a document is validated (explicitly or on save), never
on assignment. Failures are recorded as FieldError entries on the
document's Errors collection rather than raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docenum.runtime.document import Document


# =============================================================================
# Errors
# =============================================================================


class ValidationErrorKind(str, Enum):
    """Kinds of field validation failure."""

    NOT_INCLUDED = "not_included"
    CONTAINS_INVALID_MEMBER = "contains_invalid_member"
    BLANK = "blank"


@dataclass(frozen=True)
class FieldError:
    """A single validation failure keyed by field name."""

    field: str
    kind: ValidationErrorKind
    message: str

    def full_message(self) -> str:
        return f"{self.field} {self.message}"


class Errors:
    """
    Validation errors accumulated on a document.

    Example:
        >>> user.status = "unknown"
        >>> user.validate()
        False
        >>> user.errors.kinds("_status")
        [<ValidationErrorKind.NOT_INCLUDED: 'not_included'>]
    """

    def __init__(self) -> None:
        self._errors: list[FieldError] = []

    def add(self, error: FieldError) -> None:
        self._errors.append(error)

    def clear(self) -> None:
        self._errors.clear()

    def on(self, field: str) -> list[str]:
        """Messages recorded for a field."""
        return [e.message for e in self._errors if e.field == field]

    def kinds(self, field: str) -> list[ValidationErrorKind]:
        """Failure kinds recorded for a field."""
        return [e.kind for e in self._errors if e.field == field]

    def fields(self) -> list[str]:
        """Fields with at least one error, in first-failure order."""
        return list(dict.fromkeys(e.field for e in self._errors))

    def full_messages(self) -> list[str]:
        return [e.full_message() for e in self._errors]

    def to_dict(self) -> dict[str, list[str]]:
        return {field: self.on(field) for field in self.fields()}

    def __contains__(self, field: object) -> bool:
        return any(e.field == field for e in self._errors)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(list(self._errors))

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __repr__(self) -> str:
        return f"Errors({self.to_dict()!r})"


# =============================================================================
# Validators
# =============================================================================


class FieldValidator(ABC):
    """Base class for validators bound to a single field."""

    def __init__(self, field_name: str):
        self.field_name = field_name

    @abstractmethod
    def check(self, value: Any) -> FieldError | None:
        """Return a FieldError if ``value`` is invalid, else None."""

    def validate(self, document: Document, errors: Errors) -> None:
        """Check the document's current field value and record any failure."""
        error = self.check(document.read_attribute(self.field_name))
        if error is not None:
            errors.add(error)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.field_name!r})"


class PresenceValidator(FieldValidator):
    """Fails when the field is None, an empty string, or an empty list."""

    def check(self, value: Any) -> FieldError | None:
        if value is None or value == "" or value == []:
            return FieldError(self.field_name, ValidationErrorKind.BLANK, "can't be blank")
        return None


class InclusionValidator(FieldValidator):
    """
    Scalar enum validator: the value must be one of the allowed values.

    An unset (None) value passes only when ``allow_nil`` is set.
    """

    def __init__(self, field_name: str, allowed: Iterable[str], allow_nil: bool = False):
        super().__init__(field_name)
        self.allowed = tuple(allowed)
        self.allow_nil = allow_nil
        self._allowed_set = frozenset(self.allowed)

    def check(self, value: Any) -> FieldError | None:
        if value is None and self.allow_nil:
            return None
        if isinstance(value, str) and value in self._allowed_set:
            return None
        return FieldError(
            self.field_name,
            ValidationErrorKind.NOT_INCLUDED,
            f"is not included in the list ({', '.join(self.allowed)})",
        )


class MultipleValidator(FieldValidator):
    """
    Set-valued enum validator: every element must be an allowed value.

    None counts as an empty set and an empty list is always valid.
    """

    def __init__(self, field_name: str, allowed: Iterable[str]):
        super().__init__(field_name)
        self.allowed = tuple(allowed)
        self._allowed_set = frozenset(self.allowed)

    def check(self, value: Any) -> FieldError | None:
        if value is None:
            return None
        if not isinstance(value, (list, tuple)):
            return FieldError(
                self.field_name,
                ValidationErrorKind.CONTAINS_INVALID_MEMBER,
                f"must be a list of values from ({', '.join(self.allowed)})",
            )
        invalid = [
            item for item in value if not (isinstance(item, str) and item in self._allowed_set)
        ]
        if invalid:
            return FieldError(
                self.field_name,
                ValidationErrorKind.CONTAINS_INVALID_MEMBER,
                f"contains invalid values: {', '.join(map(str, invalid))}",
            )
        return None
