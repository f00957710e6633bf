"""
docenum logging infrastructure.

Provides:
- Console output for human monitoring
- Optional JSONL file output (one JSON object per line) for tooling
- Contextual logging helpers that attach structured data to records

Every docenum module logs through ``logging.getLogger(__name__)``, so all
records land under the ``docenum`` logger configured here.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from docenum.config import get_log_level

ROOT_LOGGER_NAME = "docenum"
LOG_FILE_NAME = "docenum.log"

_NO_COLOR = os.environ.get("NO_COLOR") or not sys.stdout.isatty()


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "" if _NO_COLOR else "\033[0m"
    DIM = "" if _NO_COLOR else "\033[2m"

    DEBUG = "" if _NO_COLOR else "\033[36m"  # Cyan
    INFO = "" if _NO_COLOR else "\033[32m"  # Green
    WARNING = "" if _NO_COLOR else "\033[33m"  # Yellow
    ERROR = "" if _NO_COLOR else "\033[31m"  # Red
    CRITICAL = "" if _NO_COLOR else "\033[35m"  # Magenta


# =============================================================================
# Formatters
# =============================================================================


class JSONLFormatter(logging.Formatter):
    """
    Formats log records as JSON Lines.

    Each entry carries: timestamp, level, logger, message, and optional
    context / source / exception objects.

    Example output:
    {"timestamp":"2024-01-15T10:30:45.123000Z","level":"INFO","logger":"docenum.runtime.compiler","message":"Installed enum User.status","context":{"values":3}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC)
            .replace(tzinfo=None)
            .isoformat()
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DEBUG,
        logging.INFO: Colors.INFO,
        logging.WARNING: Colors.WARNING,
        logging.ERROR: Colors.ERROR,
        logging.CRITICAL: Colors.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        component = record.name.removeprefix(f"{ROOT_LOGGER_NAME}.")

        if _NO_COLOR:
            prefix = f"[{timestamp}] [{component}]"
        else:
            prefix = f"{Colors.DIM}{timestamp}{Colors.RESET} [{component}]"

        if record.levelno != logging.INFO:
            level_name = record.levelname
            if not _NO_COLOR:
                level_color = self.LEVEL_COLORS.get(record.levelno, "")
                level_name = f"{level_color}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        context = getattr(record, "context", None)
        if context:
            message = f"{message} {json.dumps(context, default=str)}"
        return message


# =============================================================================
# Logger Setup
# =============================================================================


_log_dir: Path | None = None


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``docenum`` logger.

    Args:
        log_dir: Directory for the JSONL log file; console only when None
        level: Minimum log level (defaults to DOCENUM_LOG_LEVEL)
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        The configured root ``docenum`` logger
    """
    global _log_dir

    if level is None:
        level = get_log_level()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        _log_dir = Path(log_dir)
        _log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            _log_dir / LOG_FILE_NAME,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONLFormatter())
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)
    else:
        _log_dir = None

    return root_logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a message with structured context data.

    Args:
        logger: Logger instance
        level: Logging level (logging.INFO, logging.ERROR, etc.)
        message: Human-readable message
        context: Structured context data (included in JSONL output)
        **kwargs: Additional context items
    """
    extra = {"context": {**(context or {}), **kwargs}} if (context or kwargs) else {}
    logger.log(level, message, extra=extra)


def get_log_file() -> Path | None:
    """Get the path to the JSONL log file, if file logging is enabled."""
    if _log_dir:
        return _log_dir / LOG_FILE_NAME
    return None


def get_recent_logs(count: int = 50, level: str | None = None) -> list[dict[str, Any]]:
    """
    Get recent JSONL log entries.

    Args:
        count: Number of recent entries to return
        level: Optional filter by level (ERROR, WARNING, etc.)

    Returns:
        List of log entries (most recent last)
    """
    log_file = get_log_file()
    if not log_file or not log_file.exists():
        return []

    entries: list[dict[str, Any]] = []
    with open(log_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if level and entry.get("level") != level.upper():
                continue
            entries.append(entry)

    return entries[-count:]
