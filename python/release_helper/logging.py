"""
Structured logging for the release helper.

Features:
- Plain text or JSON console output
- Optional JSONL log file rolled over daily
- Structured context binding for correlating the log lines of one release run
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from release_helper.config import get_config

if TYPE_CHECKING:
    from structlog.types import Processor

DEFAULT_BACKUP_COUNT = 14


class DailyJSONLHandler(TimedRotatingFileHandler):
    """
    File handler writing one JSON object per line, rolled over at midnight.
    """

    def __init__(
        self,
        filename: str | Path,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        encoding: str = "utf-8",
    ):
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            filename=str(path),
            when="midnight",
            backupCount=backup_count,
            encoding=encoding,
        )


def _add_service_info(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add service metadata to each file log entry."""
    event_dict["service"] = "release-helper"
    event_dict["pid"] = os.getpid()
    return event_dict


def _add_timestamp_utc(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _format_exception(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Format exceptions as structured data instead of multiline strings."""
    if "exception" in event_dict:
        exc_info = event_dict.pop("exception")
        if exc_info:
            event_dict["exception"] = {
                "type": type(exc_info).__name__,
                "message": str(exc_info),
            }
    return event_dict


def setup_logging(
    level: str | None = None,
    format: str | None = None,
    log_file: str | None = None,
    backup_count: int | None = None,
    enable_console: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format: Console log format (json, plain). Defaults to config value.
        log_file: JSONL log file path. Defaults to config value; None disables the file sink.
        backup_count: Number of rotated daily files to keep.
        enable_console: Whether to log to the console.
    """
    config = get_config()

    level = level or config.logging.level
    format = format or config.logging.format
    log_file = log_file or config.logging.file
    backup_count = backup_count or DEFAULT_BACKUP_COUNT

    log_level = getattr(logging, level.upper(), logging.INFO)

    jsonl_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_timestamp_utc,
        _add_service_info,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        _format_exception,
        structlog.processors.UnicodeDecoder(),
    ]

    console_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *jsonl_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = []

    if log_file:
        jsonl_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=jsonl_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )

        file_handler = DailyJSONLHandler(filename=log_file, backup_count=backup_count)
        file_handler.setFormatter(jsonl_formatter)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    if enable_console:
        if format.lower() == "json":
            console_renderer: Processor = structlog.processors.JSONRenderer()
        else:
            console_renderer = structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )

        console_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=console_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                console_renderer,
            ],
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(console_formatter)
        console_handler.setLevel(log_level)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Example:
        logger = get_logger(__name__)
        logger.info("version_updated", version="24.51.0.630")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log messages in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def with_context(**kwargs: Any) -> Iterator[None]:
    """
    Context manager for temporary context binding.

    Example:
        with with_context(release="MyApp.csproj"):
            logger.info("release_started")
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
