"""Shared pytest fixtures for docenum tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from docenum.runtime.document import Document
from docenum.runtime.repository import DatabaseManager, configure_database


@pytest.fixture(autouse=True)
def default_database(tmp_path: Path) -> Iterator[DatabaseManager]:
    """Point the process-wide default database at a per-test file."""
    db = configure_database(tmp_path / "default.db")
    yield db
    db.close()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db_manager(temp_db_path: Path) -> DatabaseManager:
    """Create a database manager with temporary database."""
    return DatabaseManager(temp_db_path)


@pytest.fixture
def document_class(db_manager: DatabaseManager) -> type[Document]:
    """A fresh, empty Document subclass bound to the test database."""

    class Account(Document):
        pass

    Account.use_database(db_manager)
    return Account
