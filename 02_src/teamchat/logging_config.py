"""Structured logging configuration for Team Chat."""

import json
import logging
import logging.config
import logging.handlers
import os
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .config import DEFAULT_LOG_PATH

_chat_context: ContextVar[dict] = ContextVar("chat_context", default={})


def set_log_context(**values: str) -> None:
    """Attach chat ids (user_id, owner_id, peer_id) to every record of this task."""
    _chat_context.set({**_chat_context.get(), **values})


@contextmanager
def log_context(**values: str) -> Iterator[None]:
    token = _chat_context.set({**_chat_context.get(), **values})
    try:
        yield
    finally:
        _chat_context.reset(token)


class ChatContextFilter(logging.Filter):
    """Merge the bound chat ids into ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        bound = _chat_context.get()
        if bound:
            record.context = {**bound, **getattr(record, "context", {})}
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Callers attach scope/user ids via extra={"context": {...}}
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Setup structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to 04_logs/app.log.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = str(DEFAULT_LOG_PATH)

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "teamchat.logging_config.JSONFormatter",
            },
        },
        "filters": {
            "chat_context": {
                "()": "teamchat.logging_config.ChatContextFilter",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "filters": ["chat_context"],
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
                "filters": ["chat_context"],
            },
        },
        "loggers": {
            "aiosqlite": {"level": "WARNING"},
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
