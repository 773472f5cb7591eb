"""Core primitives: error taxonomy, structured logging, settings."""

from lambda_adapter.core.errors import (
    AdapterError,
    ConfigError,
    DecodeError,
    EncodeError,
    ErrorCategory,
    ErrorContext,
    HandlerNotFoundError,
    HandlingError,
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
    categorize_error,
    is_retryable,
)
from lambda_adapter.core.logging import LogContext, LogLevel, configure_logging, get_logger, log
from lambda_adapter.core.settings import RuntimeSettings, clear_settings_cache, get_env, get_settings

__all__ = [
    "AdapterError",
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "ErrorCategory",
    "ErrorContext",
    "HandlerNotFoundError",
    "HandlingError",
    "TransportConnectionError",
    "TransportError",
    "TransportTimeoutError",
    "categorize_error",
    "is_retryable",
    "LogContext",
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log",
    "RuntimeSettings",
    "clear_settings_cache",
    "get_env",
    "get_settings",
]
