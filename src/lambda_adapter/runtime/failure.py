"""Map any failure to the control plane's fixed-shape error payload."""

from __future__ import annotations

import traceback

from lambda_adapter.core.errors import AdapterError, categorize_error
from lambda_adapter.runtime.models import InvocationFailure


def _describe(error: BaseException) -> str:
    try:
        text = error.message if isinstance(error, AdapterError) else str(error)
        return text or type(error).__name__
    except Exception:
        return ""


def _details(error: BaseException) -> str:
    try:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    except Exception:
        try:
            return repr(error)
        except Exception:
            return ""


def _root_cause(error: BaseException) -> BaseException:
    seen = {id(error)}
    current = error
    while current.__cause__ is not None and id(current.__cause__) not in seen:
        current = current.__cause__
        seen.add(id(current))
    return current


def error_type(error: BaseException) -> str:
    """``<Category>.<ExceptionName>`` for the error-type header.

    The category is taken from the outermost error, the name from the root
    cause, e.g. ``HANDLER.ZeroDivisionError`` or ``PARSE.JSONDecodeError``.
    """
    try:
        return f"{categorize_error(error).value}.{type(_root_cause(error)).__name__}"
    except Exception:
        return ""


def error_response(error: BaseException) -> InvocationFailure:
    """Build the failure payload for *error*.  Never raises.

    ``error_localized_description`` is a one-line summary (the exception
    message, or its class name when the message is empty).
    ``error_details`` is the full traceback rendering, chained causes
    included.
    """
    return InvocationFailure(
        error_localized_description=_describe(error),
        error_details=_details(error),
        error_type=error_type(error),
    )


__all__ = ["error_response", "error_type"]
