"""Structured logging for metadata resolution.

Interactive interpreter sessions get console output, server deployments
get one JSON object per event.

Usage:
    from procsql_schema.core.logging import get_logger, configure_logging

    # Configure at startup
    configure_logging(log_level="INFO", log_format="console")

    # Get logger in any module
    logger = get_logger(__name__)

    # Log with structured context
    logger.info("schema_cache_miss", connection="hive", table="sales.orders")

    # Scope context to a block (e.g. one interpreter statement)
    with log_context(session_id="s-1", statement=42):
        logger.debug("resolving_column", column="orders.amount")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, cast

import structlog
from structlog.typing import FilteringBoundLogger

if TYPE_CHECKING:
    from procsql_schema.core.config import Settings

# Key/value pairs merged into every event logged inside log_context()
_scope: ContextVar[dict[str, Any] | None] = ContextVar("procsql_log_scope", default=None)

# Driver loggers that are chatty below WARNING
_DRIVER_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "duckdb")


def _merge_scope(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor adding the active log_context() pairs to an event."""
    scope = _scope.get()
    if scope:
        for key, value in scope.items():
            event_dict.setdefault(key, value)
    return event_dict


def _renderer(log_format: str, color: bool) -> list[structlog.types.Processor]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=color,
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    show_timestamps: bool = True,
    color: bool = True,
) -> None:
    """Configure structlog and the stdlib logging used by database drivers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "console" for interactive sessions, "json" for servers
        show_timestamps: Whether events carry an ISO timestamp
        color: Whether console output is colored
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    processors: list[structlog.types.Processor] = []
    if show_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors += [
        structlog.contextvars.merge_contextvars,
        _merge_scope,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]
    processors += _renderer(log_format, color)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def configure_from_settings(settings: Settings) -> None:
    """Apply the log level and format from service settings."""
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger (typically named after __name__)."""
    return cast(FilteringBoundLogger, structlog.get_logger(name))


@contextmanager
def log_context(**context: Any) -> Iterator[dict[str, Any]]:
    """Add key/value pairs to every event logged inside the block.

    Nested scopes extend the enclosing one; inner values win on conflict.

    Usage:
        with log_context(connection="hive"):
            logger.info("describing")  # includes connection="hive"
    """
    merged = {**(_scope.get() or {}), **context}
    token = _scope.set(merged)
    try:
        yield merged
    finally:
        _scope.reset(token)


def current_log_context() -> dict[str, Any]:
    """Return a copy of the pairs added by the enclosing log_context() scopes."""
    return dict(_scope.get() or {})


configure_logging()
