"""
Structured error types for the Lambda runtime adapter.

Every failure the invocation loop can meet is expressed as an
``AdapterError`` subclass.  Errors carry a category, a retryable flag, a
structured context and the chained underlying exception, so the loop can
log them, turn them into a control-plane error payload, and keep going.

Manifesto:
    - **Typed Error Hierarchy:** One type per failure site in a cycle
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry request id, URL and method for logging
    - **Error Chaining:** The original exception is always kept as ``cause``

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                      AdapterError                          │
        │        (category, retryable, context, cause)               │
        ├───────────────────────────────────────────────────────────┤
        │                                                            │
        │  TransportError          DecodeError       HandlingError   │
        │  (NETWORK, retryable)    (PARSE)           (HANDLER)       │
        │       │                  EncodeError                       │
        │  TransportTimeoutError   (PARSE)                           │
        │  TransportConnectionError                                  │
        │                                                            │
        │  ConfigError                                               │
        │  (CONFIG)                                                  │
        │       │                                                    │
        │  HandlerNotFoundError                                      │
        └───────────────────────────────────────────────────────────┘

Examples:
    Wrapping a network failure:

    >>> try:
    ...     raise ConnectionRefusedError("refused")
    ... except ConnectionRefusedError as e:
    ...     error = TransportConnectionError("GET /next failed", cause=e)
    >>> error.retryable
    True

    Adding context:

    >>> error = DecodeError("not a JSON object").with_context(request_id="abc-123")
    >>> error.context.request_id
    'abc-123'

Guardrails:
    ❌ DON'T: Raise bare Exception from the loop's collaborators
    ✅ DO: Wrap the original exception with ``cause=``

    ❌ DON'T: Let any of these escape a dispatcher cycle
    ✅ DO: Map them to a failure payload or a re-poll

Tags:
    error-handling, exception-hierarchy, lambda-runtime, error-context

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for logging and the error-type header.

    Examples:
        >>> ErrorCategory.NETWORK.value
        'NETWORK'
        >>> ErrorCategory("PARSE") is ErrorCategory.PARSE
        True
    """

    NETWORK = "NETWORK"           # Control-plane unreachable, timeout, reset
    PARSE = "PARSE"               # Payload decode / result encode failures
    HANDLER = "HANDLER"           # User handling logic raised
    CONFIG = "CONFIG"             # Bad settings, handler cannot be loaded

    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-``None`` fields are serialized, so a context can be built
    incrementally as the error travels through a cycle.

    Examples:
        >>> ctx = ErrorContext(request_id="abc-123", method="POST")
        >>> ctx.to_dict()
        {'request_id': 'abc-123', 'method': 'POST'}

    Attributes:
        request_id: Invocation request id, when one was handed out
        url: Control-plane URL being accessed
        method: HTTP method of the failed call
        http_status: HTTP status code, if a response was received
        handler: Handler reference (``module:attr``) involved
        metadata: Additional key-value pairs
    """

    request_id: str | None = None
    url: str | None = None
    method: str | None = None
    http_status: int | None = None
    handler: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["request_id", "url", "method", "http_status", "handler"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AdapterError(Exception):
    """
    Base exception for all runtime adapter errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their failure site.

    Examples:
        >>> error = AdapterError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> d = AdapterError("bad", category=ErrorCategory.PARSE).to_dict()
        >>> d["category"]
        'PARSE'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AdapterError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DecodeError("bad payload").with_context(request_id=request_id)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSPORT ERRORS (Retryable)
# =============================================================================


class TransportError(AdapterError):
    """
    A round trip to the control plane did not produce a response.

    Raised when the connection cannot be established, the timeout elapses,
    or the remote end resets the connection.  A non-2xx status is a valid
    response and never raises this.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class TransportTimeoutError(TransportError):
    """The round trip did not complete within its timeout."""


class TransportConnectionError(TransportError):
    """Connection refused, reset, or otherwise broken."""


# =============================================================================
# PAYLOAD ERRORS
# =============================================================================


class DecodeError(AdapterError):
    """Invocation body is not a UTF-8 encoded JSON object."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class EncodeError(AdapterError):
    """Handler result cannot be encoded as JSON."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


# =============================================================================
# HANDLER ERRORS
# =============================================================================


class HandlingError(AdapterError):
    """The handling capability raised while processing an event."""

    default_category = ErrorCategory.HANDLER
    default_retryable = False

    @classmethod
    def from_exception(cls, exc: BaseException) -> HandlingError:
        """Wrap *exc*, keeping its type name in the message."""
        text = str(exc)
        message = f"{type(exc).__name__}: {text}" if text else type(exc).__name__
        return cls(message, cause=exc)


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(AdapterError):
    """Configuration error.  Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class HandlerNotFoundError(ConfigError):
    """Handler reference could not be imported or resolved."""

    def __init__(self, reference: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Handler not found: {reference}", **kwargs)
        self.context.handler = reference


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, AdapterError):
        return error.retryable
    return isinstance(error, (ConnectionError, OSError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, AdapterError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, (ValueError, UnicodeError)):
        return ErrorCategory.PARSE
    if isinstance(error, (ImportError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AdapterError",
    "TransportError",
    "TransportTimeoutError",
    "TransportConnectionError",
    "DecodeError",
    "EncodeError",
    "HandlingError",
    "ConfigError",
    "HandlerNotFoundError",
    "is_retryable",
    "categorize_error",
]
