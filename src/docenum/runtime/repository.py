"""
SQLite repository - persistence layer for documents.

One table per document class: an ``id`` primary key plus one column per
registered field. Array fields are stored as JSON text so set-valued enums
can be queried with ``json_each``. Tables are created on first use and
missing columns are added when a class gains fields.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from docenum.config import MEMORY_DB_PATH, get_db_path
from docenum.runtime.query_builder import QueryBuilder, quote_identifier
from docenum.specs.field import FieldKind, FieldSpec

logger = logging.getLogger(__name__)


# =============================================================================
# SQLite Type Mapping
# =============================================================================


def _field_kind_to_sqlite(kind: FieldKind) -> str:
    """Map field kinds to SQLite column types."""
    mapping: dict[FieldKind, str] = {
        FieldKind.STR: "TEXT",
        FieldKind.INT: "INTEGER",
        FieldKind.BOOL: "INTEGER",  # SQLite uses 0/1 for bool
        FieldKind.SYMBOL: "TEXT",
        FieldKind.ARRAY: "TEXT",  # JSON array as string
    }
    return mapping.get(kind, "TEXT")


def _python_to_sqlite(value: Any, kind: FieldKind | None = None) -> Any:
    """Convert Python value to SQLite-compatible value."""
    if value is None:
        return None
    elif isinstance(value, Enum):
        return value.value
    elif kind == FieldKind.ARRAY or isinstance(value, (list, tuple)):
        items = [v.value if isinstance(v, Enum) else v for v in value]
        return json.dumps(items, default=str)
    elif isinstance(value, bool):
        return 1 if value else 0
    else:
        return value


def _sqlite_to_python(value: Any, kind: FieldKind | None = None) -> Any:
    """Convert SQLite value to Python type based on field kind."""
    if value is None or kind is None:
        return value
    elif kind == FieldKind.ARRAY:
        return json.loads(value)
    elif kind == FieldKind.BOOL:
        return bool(value)
    else:
        return value


# =============================================================================
# Database Manager
# =============================================================================


class DatabaseManager:
    """
    Manages the SQLite database connection and document tables.

    File databases open a short-lived connection per operation. An
    in-memory database (``:memory:``) keeps one shared connection, since a
    new connection would see an empty database.
    """

    def __init__(self, db_path: str | Path = MEMORY_DB_PATH):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file, or ``:memory:``
        """
        self.in_memory = str(db_path) == MEMORY_DB_PATH
        self.db_path = db_path if self.in_memory else Path(db_path)
        self._connection: sqlite3.Connection | None = None
        self._ensured: dict[str, frozenset[str]] = {}
        if not self.in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection context manager.

        Commits on success and rolls back on error.

        Yields:
            SQLite connection
        """
        if self.in_memory:
            if self._connection is None:
                self._connection = self._connect()
            conn = self._connection
        else:
            conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if not self.in_memory:
                conn.close()

    def close(self) -> None:
        """Close the shared in-memory connection, discarding its data."""
        if self._connection:
            self._connection.close()
            self._connection = None
        self._ensured.clear()

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def ensure_table(self, table_name: str, fields: Iterable[FieldSpec]) -> None:
        """
        Create a document table, or add columns for fields it lacks.

        Args:
            table_name: Table (document class) name
            fields: Registered field specs
        """
        fields = list(fields)
        signature = frozenset(f.name for f in fields)
        if self._ensured.get(table_name) == signature:
            return

        table = quote_identifier(table_name, "table name")
        if not self.table_exists(table_name):
            columns = ["id TEXT PRIMARY KEY"]
            columns.extend(self._build_column(f) for f in fields)
            sql = f"CREATE TABLE {table} ({', '.join(columns)})"
            logger.debug("SQL: %s", sql)
            with self.connection() as conn:
                conn.execute(sql)
        else:
            existing = set(self.get_table_columns(table_name))
            with self.connection() as conn:
                for f in fields:
                    if f.name in existing:
                        continue
                    sql = f"ALTER TABLE {table} ADD COLUMN {self._build_column(f)}"
                    logger.debug("SQL: %s", sql)
                    conn.execute(sql)

        self._ensured[table_name] = signature

    def _build_column(self, field: FieldSpec) -> str:
        """Build a single column definition."""
        return f"{quote_identifier(field.name, 'field name')} {_field_kind_to_sqlite(field.kind)}"

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        with self.connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (table_name,),
            )
            return cursor.fetchone() is not None

    def get_table_columns(self, table_name: str) -> list[str]:
        """Get column names for a table."""
        table = quote_identifier(table_name, "table name")
        with self.connection() as conn:
            cursor = conn.execute(f"PRAGMA table_info({table})")
            return [row[1] for row in cursor.fetchall()]


# =============================================================================
# Repository
# =============================================================================


class DocumentRepository:
    """
    Row-level persistence for one document table.

    Converts between document attribute dicts and SQLite rows using the
    registered field kinds.
    """

    def __init__(self, db_manager: DatabaseManager, table_name: str, fields: Mapping[str, FieldSpec]):
        """
        Initialize the repository.

        Args:
            db_manager: Database manager instance
            table_name: Document table name
            fields: Registered field specs keyed by name
        """
        self.db = db_manager
        self.table_name = table_name
        self.fields = fields
        self._table = quote_identifier(table_name, "table name")
        self.db.ensure_table(table_name, fields.values())

    def _to_row(self, data: dict[str, Any]) -> dict[str, Any]:
        return {
            k: _python_to_sqlite(v, self.fields[k].kind if k in self.fields else None)
            for k, v in data.items()
        }

    def _from_row(self, row: sqlite3.Row) -> dict[str, Any]:
        data = dict(row)
        return {
            k: _sqlite_to_python(v, self.fields[k].kind if k in self.fields else None)
            for k, v in data.items()
        }

    def insert(self, id: str, data: dict[str, Any]) -> None:
        """Insert a new row."""
        row = {"id": id, **self._to_row(data)}
        columns = ", ".join(quote_identifier(k, "field name") for k in row)
        placeholders = ", ".join("?" * len(row))
        sql = f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders})"
        logger.debug("SQL: %s", sql)

        with self.db.connection() as conn:
            conn.execute(sql, list(row.values()))

    def update(self, id: str, data: dict[str, Any]) -> bool:
        """
        Overwrite the stored fields of an existing row.

        Returns:
            True if the row existed
        """
        if not data:
            return self.exists(id)

        row = self._to_row(data)
        set_clause = ", ".join(f"{quote_identifier(k, 'field name')} = ?" for k in row)
        sql = f"UPDATE {self._table} SET {set_clause} WHERE id = ?"
        logger.debug("SQL: %s", sql)

        with self.db.connection() as conn:
            cursor = conn.execute(sql, [*row.values(), id])
            return cursor.rowcount > 0

    def delete(self, id: str) -> bool:
        """
        Delete a row by id.

        Returns:
            True if deleted, False if not found
        """
        sql = f"DELETE FROM {self._table} WHERE id = ?"
        with self.db.connection() as conn:
            cursor = conn.execute(sql, (id,))
            return cursor.rowcount > 0

    def fetch(self, id: str) -> dict[str, Any] | None:
        """Read a row by id."""
        sql = f"SELECT * FROM {self._table} WHERE id = ?"
        with self.db.connection() as conn:
            row = conn.execute(sql, (id,)).fetchone()
        return self._from_row(row) if row else None

    def exists(self, id: str) -> bool:
        """Check if a row exists."""
        sql = f"SELECT 1 FROM {self._table} WHERE id = ? LIMIT 1"
        with self.db.connection() as conn:
            return conn.execute(sql, (id,)).fetchone() is not None

    def select(self, builder: QueryBuilder) -> list[dict[str, Any]]:
        """Run a built SELECT and return converted rows."""
        sql, params = builder.build_select()
        logger.debug("SQL: %s %s", sql, params)
        with self.db.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._from_row(row) for row in rows]

    def count(self, builder: QueryBuilder) -> int:
        """Run a built COUNT query."""
        sql, params = builder.build_count()
        logger.debug("SQL: %s %s", sql, params)
        with self.db.connection() as conn:
            return conn.execute(sql, params).fetchone()[0]


# =============================================================================
# Default Database
# =============================================================================


_default_database: DatabaseManager | None = None


def configure_database(db_path: str | Path | None = None) -> DatabaseManager:
    """
    Set the process-wide default database.

    Args:
        db_path: Database path; DOCENUM_DB_PATH (or its default) when None

    Returns:
        The new default DatabaseManager
    """
    global _default_database

    if _default_database is not None:
        _default_database.close()
    _default_database = DatabaseManager(db_path if db_path is not None else get_db_path())
    logger.info("Using database %s", _default_database.db_path)
    return _default_database


def get_database() -> DatabaseManager:
    """Get the default database, configuring it from the environment on first use."""
    if _default_database is None:
        return configure_database()
    return _default_database
