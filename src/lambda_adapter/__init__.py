"""
lambda-adapter - custom runtime bootstrap for a serverless control plane.

Polls ``/runtime/invocation/next``, hands each decoded event to a
user-supplied handler, and posts the result or a structured error back.
"""

__version__ = "0.1.0"

from lambda_adapter.core.errors import (
    AdapterError,
    DecodeError,
    EncodeError,
    HandlingError,
    TransportError,
)
from lambda_adapter.runtime.dispatcher import LambdaEventDispatcher, report_init_error
from lambda_adapter.runtime.failure import error_response
from lambda_adapter.runtime.handler import FunctionHandler, LambdaEventHandler, load_handler
from lambda_adapter.runtime.models import DispatcherState, Invocation, InvocationFailure

__all__ = [
    "__version__",
    "AdapterError",
    "DecodeError",
    "EncodeError",
    "HandlingError",
    "TransportError",
    "LambdaEventDispatcher",
    "report_init_error",
    "LambdaEventHandler",
    "FunctionHandler",
    "load_handler",
    "error_response",
    "DispatcherState",
    "Invocation",
    "InvocationFailure",
]
