"""
Tests for enum declaration specs.

Covers value normalization, alias and prefix checks, and the default/mode
consistency rule.
"""

from enum import Enum

import pytest
from pydantic import ValidationError

from docenum.specs.enum_spec import EnumDeclaration, normalize_values, to_token
from docenum.specs.field import FieldKind, FieldSpec


class Priority(str, Enum):
    LOW = "low"
    HIGH = "high"


# =============================================================================
# Value Normalization
# =============================================================================


class TestNormalizeValues:
    """Tests for normalize_values."""

    def test_keeps_declared_order(self):
        assert normalize_values(["b", "a", "c"]) == ("b", "a", "c")

    def test_accepts_enum_members(self):
        assert normalize_values([Priority.LOW, Priority.HIGH]) == ("low", "high")

    def test_accepts_enum_class(self):
        assert normalize_values(Priority) == ("low", "high")

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            normalize_values([])

    def test_rejects_duplicates(self):
        with pytest.raises(ValueError, match="more than once"):
            normalize_values(["a", "b", "a"])

    def test_rejects_bare_string(self):
        with pytest.raises(ValueError, match="ordered sequence"):
            normalize_values("abc")

    def test_rejects_set(self):
        with pytest.raises(ValueError, match="ordered sequence"):
            normalize_values({"a", "b"})

    def test_rejects_non_string_values(self):
        with pytest.raises(ValueError, match="must be a string"):
            normalize_values(["a", 1])

    @pytest.mark.parametrize("value", ["has space", "1st", "class", ""])
    def test_rejects_non_identifiers(self, value):
        with pytest.raises(ValueError, match="valid identifier"):
            normalize_values([value])

    def test_to_token(self):
        assert to_token(Priority.HIGH) == "high"
        assert to_token("high") == "high"
        assert to_token(None) is None


# =============================================================================
# EnumDeclaration
# =============================================================================


class TestEnumDeclaration:
    """Tests for EnumDeclaration."""

    def test_defaults(self):
        declaration = EnumDeclaration(alias="status", values=["a", "b"])
        assert declaration.values == ("a", "b")
        assert declaration.multiple is False
        assert declaration.required is True
        assert declaration.validates is True
        assert declaration.has_explicit_default is False
        assert declaration.field_name == "_status"

    def test_is_frozen(self):
        declaration = EnumDeclaration(alias="status", values=["a"])
        with pytest.raises(ValidationError):
            declaration.alias = "other"

    def test_explicit_none_default_is_tracked(self):
        declaration = EnumDeclaration(alias="status", values=["a"], default=None)
        assert declaration.has_explicit_default is True
        assert declaration.default is None

    def test_enum_member_default_is_normalized(self):
        declaration = EnumDeclaration(alias="priority", values=Priority, default=Priority.HIGH)
        assert declaration.default == "high"

    def test_enum_member_list_default_is_normalized(self):
        declaration = EnumDeclaration(
            alias="priorities", values=Priority, multiple=True, default=[Priority.LOW]
        )
        assert declaration.default == ["low"]

    def test_multiple_default_must_be_list(self):
        with pytest.raises(ValidationError, match="must be a list"):
            EnumDeclaration(alias="roles", values=["a"], multiple=True, default="a")

    def test_single_default_must_be_scalar(self):
        with pytest.raises(ValidationError, match="single value"):
            EnumDeclaration(alias="status", values=["a"], default=["a"])

    def test_default_is_not_checked_against_values(self):
        declaration = EnumDeclaration(alias="status", values=["a"], default="zzz")
        assert declaration.default == "zzz"

    @pytest.mark.parametrize("alias", ["has space", "class", "_status", "1st"])
    def test_invalid_alias(self, alias):
        with pytest.raises(ValidationError):
            EnumDeclaration(alias=alias, values=["a"])

    def test_invalid_values_are_rejected(self):
        with pytest.raises(ValidationError, match="more than once"):
            EnumDeclaration(alias="status", values=["a", "a"])

    def test_custom_field_prefix(self):
        declaration = EnumDeclaration(alias="status", values=["a"], field_prefix="enum_")
        assert declaration.field_name == "enum_status"

    @pytest.mark.parametrize("prefix", ["", "1", "-"])
    def test_invalid_field_prefix(self, prefix):
        with pytest.raises(ValidationError):
            EnumDeclaration(alias="status", values=["a"], field_prefix=prefix)

    def test_field_prefix_from_environment(self, monkeypatch):
        monkeypatch.setenv("DOCENUM_FIELD_PREFIX", "f_")
        declaration = EnumDeclaration(alias="status", values=["a"])
        assert declaration.field_name == "f_status"


# =============================================================================
# FieldSpec
# =============================================================================


class TestFieldSpec:
    """Tests for FieldSpec."""

    def test_array_kind(self):
        spec = FieldSpec(name="_roles", kind=FieldKind.ARRAY, default=[])
        assert spec.is_array

    def test_initial_value_is_copied(self):
        spec = FieldSpec(name="_roles", kind=FieldKind.ARRAY, default=["a"])
        first = spec.initial_value()
        first.append("b")
        assert spec.initial_value() == ["a"]

    @pytest.mark.parametrize("name", ["id", "ID", "rowid", "RowId", "oid", "_rowid_"])
    def test_reserved_names(self, name):
        with pytest.raises(ValidationError, match="reserved"):
            FieldSpec(name=name, kind=FieldKind.STR)

    def test_reserved_backing_field_name(self):
        with pytest.raises(ValidationError, match="reserved"):
            EnumDeclaration(alias="d", values=["a"], field_prefix="i")

    def test_invalid_name(self):
        with pytest.raises(ValidationError):
            FieldSpec(name="not valid", kind=FieldKind.STR)
