"""Tests for field validators and the Errors collection."""

from docenum.runtime.validators import (
    Errors,
    FieldError,
    InclusionValidator,
    MultipleValidator,
    PresenceValidator,
    ValidationErrorKind,
)

VALUES = ("awaiting_approval", "approved", "banned")


class TestInclusionValidator:
    """Scalar enum validation."""

    def test_declared_value_passes(self):
        validator = InclusionValidator("_status", VALUES)
        assert validator.check("approved") is None

    def test_undeclared_value_fails(self):
        validator = InclusionValidator("_status", VALUES)
        error = validator.check("deleted")
        assert error is not None
        assert error.kind == ValidationErrorKind.NOT_INCLUDED
        assert error.field == "_status"
        assert "awaiting_approval, approved, banned" in error.message

    def test_none_fails_when_required(self):
        validator = InclusionValidator("_status", VALUES)
        assert validator.check(None).kind == ValidationErrorKind.NOT_INCLUDED

    def test_none_passes_when_nil_allowed(self):
        validator = InclusionValidator("_status", VALUES, allow_nil=True)
        assert validator.check(None) is None

    def test_non_string_fails(self):
        validator = InclusionValidator("_status", VALUES)
        assert validator.check(1) is not None
        assert validator.check(["approved"]) is not None


class TestMultipleValidator:
    """Set-valued enum validation."""

    def test_subset_passes(self):
        validator = MultipleValidator("_roles", ("author", "editor"))
        assert validator.check(["editor", "author"]) is None

    def test_empty_list_passes(self):
        validator = MultipleValidator("_roles", ("author", "editor"))
        assert validator.check([]) is None

    def test_none_passes(self):
        validator = MultipleValidator("_roles", ("author", "editor"))
        assert validator.check(None) is None

    def test_invalid_member_fails(self):
        validator = MultipleValidator("_roles", ("author", "editor"))
        error = validator.check(["author", "owner"])
        assert error.kind == ValidationErrorKind.CONTAINS_INVALID_MEMBER
        assert error.message == "contains invalid values: owner"

    def test_non_list_fails(self):
        validator = MultipleValidator("_roles", ("author", "editor"))
        error = validator.check("author")
        assert error.kind == ValidationErrorKind.CONTAINS_INVALID_MEMBER


class TestPresenceValidator:
    def test_blank_values(self):
        validator = PresenceValidator("title")
        for value in (None, "", []):
            assert validator.check(value).kind == ValidationErrorKind.BLANK
        assert validator.check("x") is None


class TestErrors:
    """Tests for the Errors collection."""

    def test_empty(self):
        errors = Errors()
        assert not errors
        assert len(errors) == 0
        assert errors.to_dict() == {}

    def test_grouping_by_field(self):
        errors = Errors()
        errors.add(FieldError("_status", ValidationErrorKind.NOT_INCLUDED, "is bad"))
        errors.add(FieldError("_roles", ValidationErrorKind.CONTAINS_INVALID_MEMBER, "x"))
        errors.add(FieldError("_status", ValidationErrorKind.BLANK, "is blank"))

        assert errors
        assert "_status" in errors
        assert "title" not in errors
        assert errors.fields() == ["_status", "_roles"]
        assert errors.on("_status") == ["is bad", "is blank"]
        assert errors.kinds("_roles") == [ValidationErrorKind.CONTAINS_INVALID_MEMBER]
        assert errors.full_messages()[0] == "_status is bad"

    def test_clear(self):
        errors = Errors()
        errors.add(FieldError("_status", ValidationErrorKind.BLANK, "can't be blank"))
        errors.clear()
        assert len(errors) == 0
