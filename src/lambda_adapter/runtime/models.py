"""Runtime data model — endpoints, invocations, outcomes, dispatcher state.

Manifesto:
    Every value that crosses a cycle boundary gets a name.  An invocation
    is created once per poll cycle, consumed within it, and never
    persisted; its outcome is produced once and posted once.

Tags:
    lambda-runtime, models, invocation, dataclass

Doc-Types:
    api-reference
"""

from __future__ import annotations

import time
from urllib.parse import quote
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

REQUEST_ID_HEADER = "lambda-runtime-aws-request-id"
DEADLINE_HEADER = "lambda-runtime-deadline-ms"
FUNCTION_ARN_HEADER = "lambda-runtime-invoked-function-arn"
TRACE_ID_HEADER = "lambda-runtime-trace-id"
ERROR_TYPE_HEADER = "Lambda-Runtime-Function-Error-Type"

API_VERSION = "2018-06-01"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RuntimeEndpoints:
    """Builds control-plane URLs for one runtime API address.

    *runtime_api* is normally ``host:port``; a full ``http://`` base is
    accepted as well.

    >>> RuntimeEndpoints("127.0.0.1:9001").next_invocation
    'http://127.0.0.1:9001/2018-06-01/runtime/invocation/next'
    """

    def __init__(self, runtime_api: str, api_version: str = API_VERSION):
        base = runtime_api.strip().rstrip("/")
        if "://" not in base:
            base = f"http://{base}"
        self.base_url = base
        self.api_version = api_version
        self._runtime = f"{base}/{api_version}/runtime"

    @property
    def next_invocation(self) -> str:
        return f"{self._runtime}/invocation/next"

    def invocation_response(self, request_id: str) -> str:
        return f"{self._runtime}/invocation/{quote(request_id, safe='')}/response"

    def invocation_error(self, request_id: str) -> str:
        return f"{self._runtime}/invocation/{quote(request_id, safe='')}/error"

    @property
    def init_error(self) -> str:
        return f"{self._runtime}/init/error"

    def __repr__(self) -> str:
        return f"RuntimeEndpoints({self.base_url!r}, api_version={self.api_version!r})"


@dataclass(frozen=True)
class Invocation:
    """One unit of work handed out by the control plane."""

    request_id: str
    event: dict[str, Any]
    headers: Mapping[str, str]

    @property
    def deadline_ms(self) -> int | None:
        """Epoch milliseconds by which the invocation must finish, if sent."""
        raw = self.headers.get(DEADLINE_HEADER)
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    @property
    def invoked_function_arn(self) -> str | None:
        return self.headers.get(FUNCTION_ARN_HEADER)

    @property
    def trace_id(self) -> str | None:
        return self.headers.get(TRACE_ID_HEADER)

    def remaining_time_ms(self) -> int | None:
        deadline = self.deadline_ms
        if deadline is None:
            return None
        return max(0, deadline - int(time.time() * 1000))


@dataclass(frozen=True)
class InvocationSuccess:
    """Value returned by the handling capability."""

    payload: Any


@dataclass(frozen=True)
class InvocationFailure:
    """Fixed-shape error payload posted to the ``error`` endpoint."""

    error_localized_description: str
    error_details: str
    error_type: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "errorLocalizedDescription": self.error_localized_description,
            "errorDetails": self.error_details,
        }


InvocationOutcome = InvocationSuccess | InvocationFailure


class DispatcherState(str, Enum):
    """Lifecycle of a dispatcher: IDLE → RUNNING → STOPPING → IDLE."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class DispatcherStats:
    """Counters for one dispatcher instance."""

    polls: int = 0
    empty_polls: int = 0
    poll_errors: int = 0
    invocations: int = 0
    succeeded: int = 0
    failed: int = 0
    post_errors: int = 0  # transport failures only; succeeded counts delivered responses
    started_at: datetime | None = None
    last_poll_at: datetime | None = None
    current_request_id: str | None = None

    @property
    def uptime_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        return (_utcnow() - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "polls": self.polls,
            "empty_polls": self.empty_polls,
            "poll_errors": self.poll_errors,
            "invocations": self.invocations,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "post_errors": self.post_errors,
            "uptime_seconds": round(self.uptime_seconds, 2),
            "last_poll_at": self.last_poll_at.isoformat() if self.last_poll_at else None,
            "current_request_id": self.current_request_id,
        }
