"""Structured logging infrastructure for storepulse.

Provides structured logging using structlog with fetch-specific context
such as the resource being loaded and a per-request correlation id.

Example usage:
    from storepulse.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("retry")

    # Log with key/value context
    logger.info("retry_scheduled", attempt=2, delay_ms=2000)

    # Correlate everything logged while one resource loads
    ctx = FetchContext(resource="reviews")
    with with_context(ctx):
        logger.info("load_started")  # Includes resource, request_id
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Sensitive field patterns that should never be logged
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "credential",
    "cookie",
    "session",
    "bearer",
    "authorization",
})


@dataclass(frozen=True)
class FetchContext:
    """Immutable context for correlating log entries of one load.

    Attributes:
        resource: The dashboard resource being loaded (e.g., "reviews").
        request_id: Unique id for this load, generated when omitted.
        attempt: Retry attempt the entry belongs to (None outside retries).
    """

    resource: str
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    attempt: int | None = None

    def with_attempt(self, attempt: int) -> FetchContext:
        """Create a new context pinned to a retry attempt."""
        return FetchContext(
            resource=self.resource,
            request_id=self.request_id,
            attempt=attempt,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (excludes None values)."""
        result: dict[str, Any] = {
            "resource": self.resource,
            "request_id": self.request_id,
        }
        if self.attempt is not None:
            result["attempt"] = self.attempt
        return result


# ContextVar keeps contexts isolated between concurrent asyncio tasks
_current_context: ContextVar[FetchContext | None] = ContextVar(
    "storepulse_context", default=None
)


def get_current_context() -> FetchContext | None:
    """Get the current FetchContext if set."""
    return _current_context.get()


@contextmanager
def with_context(ctx: FetchContext) -> Iterator[FetchContext]:
    """Set a FetchContext for the duration of a block.

    Args:
        ctx: The FetchContext to use for the block.

    Yields:
        The FetchContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    """Return "[REDACTED]" for values logged under a sensitive key."""
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields (one level deep)."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {
                k: _sanitize_value(k, v) for k, v in value.items()
            }
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges the current FetchContext.

    Explicitly logged keys take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class PulseLogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is fetched lazily on every call so that
    loggers created at import time respect a later configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> PulseLogger:
        """Create a new logger with additional bound context."""
        new_logger = PulseLogger.__new__(PulseLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)


def _get_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]

    if include_context:
        processors.append(_add_context)

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure storepulse structured logging.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable stderr output, "json" for
            structured output (to file_path, or stdout without one),
            "both" for console to stderr plus JSON to file_path.
        file_path: Optional log file. Required if format="both".
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to add ISO8601 timestamps.
        include_context: Whether to merge the active FetchContext.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        handlers.append(console_handler)

    if format in ("json", "both"):
        if file_path:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            handlers.append(file_handler)
        else:
            json_handler = logging.StreamHandler(sys.stdout)
            json_handler.setLevel(log_level)
            handlers.append(json_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    # cache_logger_on_first_use=False so module-level loggers pick up reconfiguration
    structlog.configure(
        processors=_get_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> PulseLogger:
    """Get a logger bound to a component name (e.g., "retry", "network")."""
    return PulseLogger(component, **initial_context)


__all__ = [
    "FetchContext",
    "PulseLogger",
    "SENSITIVE_PATTERNS",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
