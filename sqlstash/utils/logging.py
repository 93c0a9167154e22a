"""Logging helpers for SQLStash.

Loggers handed out by :func:`get_logger` live under the ``sqlstash`` namespace.
Cache decisions are logged at DEBUG with structured ``extra_fields`` through
:func:`log_with_context`. Every record carries the correlation ID of the
:func:`correlation_context` it was emitted in, so all hits and misses of one
unit of work (a CLI run, a request) can be grouped. Output is only attached
when :func:`configure_logging` is called; the library never configures logging
on import.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from sqlstash._serialization import encode_json
from sqlstash.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "LOG_FORMATS",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
)

ROOT_LOGGER_NAME: Final = "sqlstash"
NO_CORRELATION_ID: Final = "-"
TEXT_FORMAT: Final = "%(asctime)s %(levelname)-8s %(name)s [%(correlation_id)s] %(message)s"
LOG_FORMATS: Final = ("structured", "text")

correlation_id_var: ContextVar[str | None] = ContextVar("sqlstash_correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the correlation ID of the active :func:`correlation_context`, if any."""
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Tag every record logged inside the block with one correlation ID.

    Args:
        correlation_id: ID to use. A random hex ID is generated when omitted.

    Yields:
        The active correlation ID.
    """
    active = correlation_id or uuid.uuid4().hex
    token = correlation_id_var.set(active)
    try:
        yield active
    finally:
        correlation_id_var.reset(token)


class CorrelationIDFilter(logging.Filter):
    """Stamp ``correlation_id`` on every record so text formats can reference it."""

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    ``extra_fields`` passed through :func:`log_with_context` are merged into the
    top level of the object.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(extra_fields)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the ``sqlstash`` namespace.

    Args:
        name: Dotted logger name. A missing ``sqlstash.`` prefix is added.

    Returns:
        The logger, carrying a :class:`CorrelationIDFilter`.
    """
    if name is None:
        name = ROOT_LOGGER_NAME
    elif name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        msg = f"Unknown log level: {level!r}"
        raise ImproperConfigurationError(msg)
    return resolved


def _build_formatter(format_style: str) -> logging.Formatter:
    if format_style == "structured":
        return StructuredFormatter()
    if format_style == "text":
        return logging.Formatter(TEXT_FORMAT)
    msg = f"Unknown log format {format_style!r}, expected one of {', '.join(LOG_FORMATS)}"
    raise ImproperConfigurationError(msg)


def configure_logging(
    level: str | int = "INFO", format_style: str = "structured", log_to_file: str | None = None
) -> logging.Logger:
    """Send ``sqlstash`` logs to stderr and optionally to a file.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        level: Level name or number.
        format_style: ``"structured"`` for JSON lines or ``"text"``.
        log_to_file: Path of a file that receives structured records.

    Raises:
        ImproperConfigurationError: If ``level`` or ``format_style`` is unknown.

    Returns:
        The configured ``sqlstash`` logger.
    """
    resolved_level = _resolve_level(level)
    formatter = _build_formatter(format_style)

    root = get_logger()
    root.setLevel(resolved_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(formatter)
    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)
    for handler in handlers:
        handler.addFilter(CorrelationIDFilter())
        root.addHandler(handler)
    root.propagate = False

    log_with_context(root, logging.DEBUG, "logging.configured", format_style=format_style, handlers=len(handlers))
    return root


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with structured ``extra_fields`` when ``level`` is enabled.

    Args:
        logger: Logger to emit on.
        level: Log level.
        message: Short event name such as ``cache.hit``.
        **extra_fields: Fields merged into structured output.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"extra_fields": extra_fields})
