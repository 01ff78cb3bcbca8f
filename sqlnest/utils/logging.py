"""Logging setup for sqlnest.

Library code only creates loggers under the ``sqlnest`` namespace and attaches
its context to each record as ``extra={"extra_fields": {...}}``; nothing is
printed until the application installs handlers. :func:`configure_logging` is
the public entry point for that, for example::

    from sqlnest.utils.logging import configure_logging, set_correlation_id

    configure_logging("WARNING")
    set_correlation_id(request_id)

Every record emitted while a correlation id is set carries it, so the failures
of one request or job can be grouped across connections.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from sqlnest._serialization import encode_json

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "LOGGER_NAME",
    "TEXT_FORMAT",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

LOGGER_NAME: Final = "sqlnest"
TEXT_FORMAT: Final = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlnest_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag the records logged from the current context; ``None`` clears the tag."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON document.

    Fields passed to :func:`log_with_context` are nested under ``context`` so they
    never collide with the fixed keys.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if correlation_id := get_correlation_id():
            entry["correlation_id"] = correlation_id
        context = getattr(record, "extra_fields", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Expose the correlation id as ``record.correlation_id`` for text formats.

    Records logged without a correlation id get ``"-"``.
    """

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``sqlnest`` or a logger below it.

    ``get_logger("driver")`` and ``get_logger("sqlnest.driver")`` name the same logger.
    """
    if name is None or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> logging.Logger:
    """Install handlers on the ``sqlnest`` logger.

    Previously installed handlers are replaced and records stop propagating to
    the root logger.

    Args:
        level: Minimum level name, e.g. ``"WARNING"``.
        format_style: ``"structured"`` for JSON lines on stdout, ``"text"`` for
            :data:`TEXT_FORMAT`.
        log_to_file: Also append JSON lines to this file.
        extra_handlers: Handlers installed as given, after the correlation filter
            is added to them.

    Returns:
        The configured ``sqlnest`` logger.
    """
    logger = get_logger()
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if format_style == "structured" else logging.Formatter(TEXT_FORMAT))
    handlers: list[logging.Handler] = [console]
    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)
    handlers.extend(extra_handlers or ())

    for handler in handlers:
        if not any(isinstance(f, CorrelationIDFilter) for f in handler.filters):
            handler.addFilter(CorrelationIDFilter())
        logger.addHandler(handler)
    logger.propagate = False

    log_with_context(logger, logging.DEBUG, "sqlnest logging configured", format_style=format_style, handlers=len(handlers))
    return logger


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached as the record's structured context."""
    logger.log(level, message, extra={"extra_fields": extra_fields})
