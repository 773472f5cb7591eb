"""Invocation loop and the pieces it is built from.

::

    transport.py   HttpTransport, Headers, RequestResponse
    codec.py       decode_event / encode_payload
    handler.py     LambdaEventHandler protocol, FunctionHandler, load_handler
    failure.py     error_response — any exception → error payload
    backoff.py     delay between consecutive failed polls
    models.py      RuntimeEndpoints, Invocation, outcomes, stats
    dispatcher.py  LambdaEventDispatcher
"""

from lambda_adapter.runtime.backoff import BackoffStrategy, ExponentialBackoff, NoBackoff
from lambda_adapter.runtime.codec import decode_event, encode_payload
from lambda_adapter.runtime.dispatcher import LambdaEventDispatcher, report_init_error
from lambda_adapter.runtime.failure import error_response, error_type
from lambda_adapter.runtime.handler import FunctionHandler, LambdaEventHandler, as_handler, load_handler
from lambda_adapter.runtime.models import (
    REQUEST_ID_HEADER,
    DispatcherState,
    DispatcherStats,
    Invocation,
    InvocationFailure,
    InvocationSuccess,
    RuntimeEndpoints,
)
from lambda_adapter.runtime.transport import Headers, HttpTransport, RequestResponse, Transport

__all__ = [
    "BackoffStrategy",
    "ExponentialBackoff",
    "NoBackoff",
    "decode_event",
    "encode_payload",
    "LambdaEventDispatcher",
    "report_init_error",
    "error_response",
    "error_type",
    "FunctionHandler",
    "LambdaEventHandler",
    "as_handler",
    "load_handler",
    "REQUEST_ID_HEADER",
    "DispatcherState",
    "DispatcherStats",
    "Invocation",
    "InvocationFailure",
    "InvocationSuccess",
    "RuntimeEndpoints",
    "Headers",
    "HttpTransport",
    "RequestResponse",
    "Transport",
]
