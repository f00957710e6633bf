"""
Tests for query builder module.

Tests filter parsing, SQL generation, and sorting.
"""

from enum import Enum
from uuid import UUID

import pytest

from docenum.runtime.query_builder import (
    FilterCondition,
    FilterOperator,
    QueryBuilder,
    SortField,
    quote_identifier,
    validate_sql_identifier,
)


class State(str, Enum):
    OPEN = "open"


# =============================================================================
# FilterCondition Tests
# =============================================================================


class TestFilterCondition:
    """Tests for FilterCondition parsing and SQL generation."""

    def test_parse_simple_equality(self):
        """Test parsing simple field=value filter."""
        condition = FilterCondition.parse("_status", "banned")
        assert condition.field == "_status"
        assert condition.operator == FilterOperator.EQ
        assert condition.value == "banned"

    def test_parse_has_operator(self):
        condition = FilterCondition.parse("_roles__has", "author")
        assert condition.field == "_roles"
        assert condition.operator == FilterOperator.HAS

    def test_parse_in_operator(self):
        condition = FilterCondition.parse("_status__in", ["a", "b"])
        assert condition.operator == FilterOperator.IN
        assert condition.value == ["a", "b"]

    def test_parse_unknown_suffix_keeps_full_field(self):
        condition = FilterCondition.parse("first__name", "x")
        assert condition.field == "first__name"
        assert condition.operator == FilterOperator.EQ

    def test_parse_ordering_suffix_is_not_an_operator(self):
        condition = FilterCondition.parse("_status__gt", "a")
        assert condition.field == "_status__gt"
        assert condition.operator == FilterOperator.EQ

    def test_ne_sql(self):
        sql, params = FilterCondition("_status", FilterOperator.NE, "banned").to_sql()
        assert sql == '"_status" != ?'
        assert params == ["banned"]

    def test_not_in_sql(self):
        sql, params = FilterCondition("_status", FilterOperator.NOT_IN, ["a", "b"]).to_sql()
        assert sql == '"_status" NOT IN (?, ?)'
        assert params == ["a", "b"]

    def test_eq_sql(self):
        sql, params = FilterCondition("_status", FilterOperator.EQ, "banned").to_sql()
        assert sql == '"_status" = ?'
        assert params == ["banned"]

    def test_eq_none_is_null(self):
        sql, params = FilterCondition("_status", FilterOperator.EQ, None).to_sql()
        assert sql == '"_status" IS NULL'
        assert params == []

    def test_ne_none_is_not_null(self):
        sql, _ = FilterCondition("_status", FilterOperator.NE, None).to_sql()
        assert sql == '"_status" IS NOT NULL'

    def test_has_sql(self):
        sql, params = FilterCondition("_roles", FilterOperator.HAS, "author").to_sql()
        assert sql == 'EXISTS (SELECT 1 FROM json_each("_roles") WHERE json_each.value = ?)'
        assert params == ["author"]

    def test_in_sql(self):
        sql, params = FilterCondition("_status", FilterOperator.IN, ["a", "b"]).to_sql()
        assert sql == '"_status" IN (?, ?)'
        assert params == ["a", "b"]

    def test_empty_in(self):
        assert FilterCondition("_status", FilterOperator.IN, []).to_sql() == ("0", [])
        assert FilterCondition("_status", FilterOperator.NOT_IN, []).to_sql() == ("1", [])

    def test_isnull(self):
        assert FilterCondition("_status", FilterOperator.ISNULL, True).to_sql()[0] == (
            '"_status" IS NULL'
        )
        assert FilterCondition("_status", FilterOperator.ISNULL, False).to_sql()[0] == (
            '"_status" IS NOT NULL'
        )

    def test_value_conversion(self):
        uid = UUID("12345678-1234-5678-1234-567812345678")
        assert FilterCondition("x", FilterOperator.EQ, State.OPEN).to_sql()[1] == ["open"]
        assert FilterCondition("x", FilterOperator.EQ, uid).to_sql()[1] == [str(uid)]
        assert FilterCondition("x", FilterOperator.EQ, True).to_sql()[1] == [1]

    def test_invalid_field_name(self):
        with pytest.raises(ValueError, match="Invalid SQL field name"):
            FilterCondition("x; DROP TABLE y", FilterOperator.EQ, 1).to_sql()


# =============================================================================
# SortField Tests
# =============================================================================


class TestSortField:
    def test_ascending(self):
        sort = SortField.parse("_status")
        assert sort.descending is False
        assert sort.to_sql() == '"_status" ASC'

    def test_descending(self):
        sort = SortField.parse("-_status")
        assert sort.field == "_status"
        assert sort.to_sql() == '"_status" DESC'


# =============================================================================
# QueryBuilder Tests
# =============================================================================


class TestQueryBuilder:
    """Tests for QueryBuilder SQL generation."""

    def test_select_all_in_insertion_order(self):
        sql, params = QueryBuilder(table_name="User").build_select()
        assert sql == 'SELECT * FROM "User" ORDER BY rowid ASC'
        assert params == []

    def test_select_with_filters_and_sort(self):
        builder = QueryBuilder(table_name="User")
        builder.add_filters({"_status": "banned", "_roles__has": "author"})
        builder.add_sort("-_status")

        sql, params = builder.build_select()
        assert sql.startswith('SELECT * FROM "User" WHERE "_status" = ? AND EXISTS')
        assert sql.endswith('ORDER BY "_status" DESC, rowid ASC')
        assert params == ["banned", "author"]

    def test_limit_and_offset(self):
        builder = QueryBuilder(table_name="User").set_limit(5, offset=10)
        sql, params = builder.build_select()
        assert sql.endswith("LIMIT ? OFFSET ?")
        assert params == [5, 10]

    def test_offset_without_limit(self):
        builder = QueryBuilder(table_name="User").set_limit(None, offset=2)
        _, params = builder.build_select()
        assert params == [-1, 2]

    def test_count_ignores_order_and_limit(self):
        builder = QueryBuilder(table_name="User").add_filter("_status", "banned")
        builder.set_limit(1)
        sql, params = builder.build_count()
        assert sql == 'SELECT COUNT(*) FROM "User" WHERE "_status" = ?'
        assert params == ["banned"]

    def test_add_sorts_accepts_string(self):
        builder = QueryBuilder(table_name="User").add_sorts("_status")
        assert builder.sorts == [SortField("_status")]

    def test_invalid_table_name(self):
        with pytest.raises(ValueError, match="table name"):
            QueryBuilder(table_name="bad name")


class TestIdentifiers:
    def test_validate_sql_identifier(self):
        assert validate_sql_identifier("_status") == "_status"
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_sql_identifier("")

    def test_quote_identifier(self):
        assert quote_identifier("Order") == '"Order"'
        assert quote_identifier("rowid") == "rowid"
