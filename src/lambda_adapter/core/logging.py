"""
Structured, leveled logging for the runtime adapter.

A thin layer over structlog.  The invocation loop only ever calls
``get_logger()`` or the narrow ``log(message, level)`` function; how the
lines are rendered is decided once, at bootstrap, by ``configure_logging``.

Manifesto:
    Logs are the only reporting channel besides the control plane's error
    endpoint, so every line carries the request id of the invocation it
    belongs to and the call site it came from.

    - **Leveled:** DEBUG < INFO < WARN < ERROR, parsed leniently
    - **Structured:** JSON for CloudWatch-style ingestion
    - **Correlated:** ``request_id`` bound per invocation via contextvars
    - **Located:** file, function and line of every call

Architecture:
    ::

        configure_logging(level="INFO", json_format=None)
             ↓
        structlog processor chain:
          1. merge_contextvars      (request_id, dispatcher)
          2. TimeStamper(iso)
          3. add_log_level
          4. add_logger_name
          5. CallsiteParameterAdder (filename, func_name, lineno)
          6. service metadata
          7. JSONRenderer | ConsoleRenderer

Examples:
    >>> from lambda_adapter.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("invocation_received", request_id="abc-123")

    >>> LogLevel.parse("warn")
    <LogLevel.WARN: 2>

Guardrails:
    - ``LogLevel.parse`` never raises; unknown names mean INFO
    - JSON vs console is auto-detected from the TTY when not given

Tags:
    logging, structlog, observability, lambda-runtime

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from enum import IntEnum
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "lambda-adapter"


class LogLevel(IntEnum):
    """Adapter log levels, ordered by severity."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @classmethod
    def parse(cls, text: str | None) -> LogLevel:
        """Parse a level name case-insensitively.  Unknown names give INFO."""
        name = (text or "").strip().lower()
        if name == "debug":
            return cls.DEBUG
        if name in ("warn", "warning"):
            return cls.WARN
        if name == "error":
            return cls.ERROR
        return cls.INFO

    @property
    def stdlib_level(self) -> int:
        return _STDLIB_LEVELS[self]

    @property
    def method_name(self) -> str:
        return "warning" if self is LogLevel.WARN else self.name.lower()


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str | LogLevel = "INFO",
    json_format: bool | None = None,
    service: str = "lambda-adapter",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Level name (``debug``, ``info``, ``warn``, ``error``) or LogLevel
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name included in every line
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    log_level = level if isinstance(level, LogLevel) else LogLevel.parse(level)

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.stdlib_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # stdlib loggers (httpx, asyncio) follow the same threshold
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level.stdlib_level,
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def log(message: str, level: str | LogLevel = LogLevel.INFO, **fields: Any) -> None:
    """Emit *message* at *level* through the adapter's logger."""
    log_level = level if isinstance(level, LogLevel) else LogLevel.parse(level)
    logger = get_logger("lambda_adapter")
    getattr(logger, log_level.method_name)(message, **fields)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs.

    Example:
        bind_context(request_id="abc-123")
        logger.info("handler_started")  # Includes request_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        async with LogContext(request_id=invocation.request_id):
            logger.info("handler_started")
        # request_id unbound here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())

    async def __aenter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    async def __aexit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
