"""
Environment configuration for docenum.

Every setting is read from an environment variable at call time, so tests
and applications can change behavior without touching code.

Variables:
    - DOCENUM_ENV: development (default), test, or production
    - DOCENUM_DB_PATH: SQLite database path (``:memory:`` allowed)
    - DOCENUM_FIELD_PREFIX: prefix for enum backing fields (default ``_``)
    - DOCENUM_LOG_LEVEL: logging level name (default INFO)

Usage:
    from docenum.config import get_db_path, get_field_prefix

    db_path = get_db_path()  # ".docenum/data.db" unless overridden
"""

from __future__ import annotations

import logging
import os
from enum import StrEnum


class DocEnumEnv(StrEnum):
    """Runtime environment values."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


ENV_VAR = "DOCENUM_ENV"
DB_PATH_VAR = "DOCENUM_DB_PATH"
FIELD_PREFIX_VAR = "DOCENUM_FIELD_PREFIX"
LOG_LEVEL_VAR = "DOCENUM_LOG_LEVEL"

DEFAULT_DB_PATH = ".docenum/data.db"
MEMORY_DB_PATH = ":memory:"
DEFAULT_FIELD_PREFIX = "_"
DEFAULT_LOG_LEVEL = "INFO"


def get_docenum_env() -> DocEnumEnv:
    """Get the current environment from DOCENUM_ENV.

    Returns:
        DocEnumEnv: The current environment. Defaults to development if
        DOCENUM_ENV is not set or invalid.
    """
    env_value = os.environ.get(ENV_VAR, "").lower().strip()

    if env_value in ("production", "prod"):
        return DocEnumEnv.PRODUCTION
    elif env_value in ("test", "testing"):
        return DocEnumEnv.TEST
    elif env_value in ("development", "dev", ""):
        return DocEnumEnv.DEVELOPMENT
    else:
        logging.getLogger(__name__).warning(
            "Unknown DOCENUM_ENV value '%s'. "
            "Valid values: development, test, production. Defaulting to development.",
            env_value,
        )
        return DocEnumEnv.DEVELOPMENT


def is_test() -> bool:
    """Check if running in test environment."""
    return get_docenum_env() == DocEnumEnv.TEST


def get_db_path() -> str:
    """Resolve the SQLite database path.

    An explicit DOCENUM_DB_PATH always wins. Without one, the test
    environment uses an in-memory database and every other environment
    uses ``.docenum/data.db``.
    """
    explicit = os.environ.get(DB_PATH_VAR, "").strip()
    if explicit:
        return explicit
    if is_test():
        return MEMORY_DB_PATH
    return DEFAULT_DB_PATH


def get_field_prefix() -> str:
    """Prefix used to derive an enum's backing field name from its alias."""
    prefix = os.environ.get(FIELD_PREFIX_VAR)
    if prefix is None:
        return DEFAULT_FIELD_PREFIX
    return prefix.strip()


def get_log_level() -> int:
    """Resolve DOCENUM_LOG_LEVEL to a ``logging`` level number."""
    name = os.environ.get(LOG_LEVEL_VAR, DEFAULT_LOG_LEVEL).upper().strip()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    logging.getLogger(__name__).warning(
        "Unknown DOCENUM_LOG_LEVEL value '%s'. Defaulting to %s.",
        name,
        DEFAULT_LOG_LEVEL,
    )
    return logging.INFO


def get_environment_info() -> dict[str, str]:
    """Get a summary of the current configuration for startup logging."""
    return {
        "env": get_docenum_env().value,
        "db_path": get_db_path(),
        "field_prefix": get_field_prefix(),
        "log_level": logging.getLevelName(get_log_level()),
    }
