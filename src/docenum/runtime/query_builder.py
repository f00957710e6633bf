"""
Query builder for document criteria.

Provides SQL generation for filter operators (including array membership
for set-valued enum fields), sorting, and limits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

# Valid SQL identifier pattern (alphanumeric and underscore, not starting with digit)
_VALID_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# SQLite implicit insertion-order column
ROWID = "rowid"


def validate_sql_identifier(name: str, context: str = "identifier") -> str:
    """
    Validate that a string is a safe SQL identifier.

    Args:
        name: The identifier to validate
        context: Description of what's being validated (for error messages)

    Returns:
        The validated name

    Raises:
        ValueError: If the name contains invalid characters
    """
    if not name:
        raise ValueError(f"SQL {context} cannot be empty")
    if not _VALID_IDENTIFIER_PATTERN.match(name):
        raise ValueError(
            f"Invalid SQL {context} '{name}': must contain only letters, digits, "
            "and underscores, and cannot start with a digit"
        )
    return name


def quote_identifier(name: str, context: str = "identifier") -> str:
    """Validate and double-quote an identifier (table names like Order are keywords)."""
    if name == ROWID:
        return ROWID
    return f'"{validate_sql_identifier(name, context)}"'


class FilterOperator(str, Enum):
    """Supported filter operators."""

    EQ = "eq"  # Equal (default)
    NE = "ne"  # Not equal
    IN = "in"  # In list
    NOT_IN = "not_in"  # Not in list
    ISNULL = "isnull"  # Is null / is not null
    HAS = "has"  # Array field contains value


# Operator mapping to SQL
OPERATOR_SQL: dict[FilterOperator, str] = {
    FilterOperator.EQ: "{field} = ?",
    FilterOperator.NE: "{field} != ?",
    FilterOperator.IN: "{field} IN ({placeholders})",
    FilterOperator.NOT_IN: "{field} NOT IN ({placeholders})",
    FilterOperator.ISNULL: "{field} IS NULL",
    FilterOperator.HAS: "EXISTS (SELECT 1 FROM json_each({field}) WHERE json_each.value = ?)",
}


@dataclass(frozen=True)
class FilterCondition:
    """A single filter condition."""

    field: str
    operator: FilterOperator
    value: Any

    @classmethod
    def parse(cls, key: str, value: Any) -> FilterCondition:
        """
        Parse a filter key-value pair into a FilterCondition.

        Examples:
            - ("_status", "banned") -> FilterCondition(field="_status", op=EQ, value="banned")
            - ("_roles__has", "author") -> FilterCondition(field="_roles", op=HAS, value="author")
            - ("_status__in", ["a", "b"]) -> FilterCondition(field="_status", op=IN, value=[...])
        """
        operator = FilterOperator.EQ
        field_name = key

        parts = key.rsplit("__", 1)
        if len(parts) == 2 and parts[0]:
            try:
                operator = FilterOperator(parts[1].lower())
                field_name = parts[0]
            except ValueError:
                # Not an operator, treat the whole key as the field
                pass

        return cls(field=field_name, operator=operator, value=value)

    def to_sql(self) -> tuple[str, list[Any]]:
        """
        Convert condition to SQL fragment and parameters.

        Returns:
            Tuple of (sql_fragment, parameters)
        """
        field_ref = quote_identifier(self.field, "field name")
        converted_value = _convert_value(self.value)

        if self.operator == FilterOperator.ISNULL:
            if self.value:
                return f"{field_ref} IS NULL", []
            return f"{field_ref} IS NOT NULL", []

        elif self.operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            if not isinstance(converted_value, list):
                converted_value = [converted_value]
            if not converted_value:
                # Empty IN matches nothing, empty NOT IN matches everything
                return ("0" if self.operator == FilterOperator.IN else "1"), []
            placeholders = ", ".join("?" * len(converted_value))
            sql = OPERATOR_SQL[self.operator].format(field=field_ref, placeholders=placeholders)
            return sql, converted_value

        elif self.operator == FilterOperator.EQ and converted_value is None:
            return f"{field_ref} IS NULL", []

        elif self.operator == FilterOperator.NE and converted_value is None:
            return f"{field_ref} IS NOT NULL", []

        else:
            sql = OPERATOR_SQL[self.operator].format(field=field_ref)
            return sql, [converted_value]


def _convert_value(value: Any) -> Any:
    """Convert Python value to SQLite-compatible value."""
    if value is None:
        return None
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, UUID):
        return str(value)
    elif isinstance(value, bool):
        return 1 if value else 0
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [_convert_value(v) for v in value]
    else:
        return value


@dataclass(frozen=True)
class SortField:
    """A single sort field."""

    field: str
    descending: bool = False

    @classmethod
    def parse(cls, sort_str: str) -> SortField:
        """
        Parse a sort string into a SortField.

        Examples:
            - "_status" -> SortField(field="_status", desc=False)
            - "-_status" -> SortField(field="_status", desc=True)
        """
        descending = sort_str.startswith("-")
        if descending:
            sort_str = sort_str[1:]
        return cls(field=sort_str, descending=descending)

    def to_sql(self) -> str:
        """Convert to SQL ORDER BY fragment."""
        direction = "DESC" if self.descending else "ASC"
        return f"{quote_identifier(self.field, 'sort field')} {direction}"


@dataclass
class QueryBuilder:
    """
    Builds SQL queries with filters, sorting, and limits.

    Results default to insertion order (rowid) when no sort is given.

    Example:
        builder = QueryBuilder(table_name="User")
        builder.add_filter("_roles__has", "author")
        builder.add_sort("-_status")

        sql, params = builder.build_select()
    """

    table_name: str
    conditions: list[FilterCondition] = field(default_factory=list)
    sorts: list[SortField] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate table name on initialization."""
        validate_sql_identifier(self.table_name, "table name")

    def add_filter(self, key: str, value: Any) -> QueryBuilder:
        """Add a filter condition."""
        self.conditions.append(FilterCondition.parse(key, value))
        return self

    def add_filters(self, filters: dict[str, Any]) -> QueryBuilder:
        """Add multiple filter conditions."""
        for key, value in filters.items():
            self.add_filter(key, value)
        return self

    def add_condition(self, condition: FilterCondition) -> QueryBuilder:
        """Add an already-built condition."""
        self.conditions.append(condition)
        return self

    def add_sort(self, sort_str: str) -> QueryBuilder:
        """Add a sort field."""
        self.sorts.append(SortField.parse(sort_str))
        return self

    def add_sorts(self, sorts: str | list[str]) -> QueryBuilder:
        """Add multiple sort fields."""
        if isinstance(sorts, str):
            sorts = [sorts]
        for sort_str in sorts:
            self.add_sort(sort_str)
        return self

    def set_limit(self, limit: int | None, offset: int = 0) -> QueryBuilder:
        """Set LIMIT/OFFSET."""
        self.limit = None if limit is None else max(0, limit)
        self.offset = max(0, offset)
        return self

    def build_where_clause(self) -> tuple[str, list[Any]]:
        """
        Build the WHERE clause from conditions.

        Returns:
            Tuple of (where_clause, parameters)
        """
        if not self.conditions:
            return "", []

        fragments = []
        params: list[Any] = []

        for condition in self.conditions:
            sql, condition_params = condition.to_sql()
            fragments.append(sql)
            params.extend(condition_params)

        return f"WHERE {' AND '.join(fragments)}", params

    def build_order_clause(self) -> str:
        """Build the ORDER BY clause (insertion order as the final tiebreaker)."""
        order_parts = [sort.to_sql() for sort in self.sorts]
        order_parts.append(f"{ROWID} ASC")
        return f"ORDER BY {', '.join(order_parts)}"

    def build_select(self, count_only: bool = False) -> tuple[str, list[Any]]:
        """
        Build complete SELECT query.

        Args:
            count_only: If True, build COUNT(*) query instead

        Returns:
            Tuple of (sql, parameters)
        """
        table = quote_identifier(self.table_name, "table name")
        if count_only:
            query_parts = [f"SELECT COUNT(*) FROM {table}"]
        else:
            query_parts = [f"SELECT * FROM {table}"]

        where_clause, params = self.build_where_clause()
        if where_clause:
            query_parts.append(where_clause)

        if count_only:
            return " ".join(query_parts), params

        query_parts.append(self.build_order_clause())

        if self.limit is not None or self.offset:
            # SQLite needs a LIMIT for OFFSET; -1 means unbounded
            query_parts.append("LIMIT ? OFFSET ?")
            params.append(self.limit if self.limit is not None else -1)
            params.append(self.offset)

        return " ".join(query_parts), params

    def build_count(self) -> tuple[str, list[Any]]:
        """Build COUNT query."""
        return self.build_select(count_only=True)
