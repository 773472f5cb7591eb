"""Tests for endpoints, invocations and dispatcher stats."""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

from lambda_adapter.runtime.models import (
    DEADLINE_HEADER,
    DispatcherStats,
    Invocation,
    InvocationFailure,
    RuntimeEndpoints,
)
from lambda_adapter.runtime.transport import Headers


class TestRuntimeEndpoints:
    def test_urls(self):
        endpoints = RuntimeEndpoints("127.0.0.1:9001")
        base = "http://127.0.0.1:9001/2018-06-01/runtime"

        assert endpoints.next_invocation == f"{base}/invocation/next"
        assert endpoints.invocation_response("abc-123") == f"{base}/invocation/abc-123/response"
        assert endpoints.invocation_error("abc-123") == f"{base}/invocation/abc-123/error"
        assert endpoints.init_error == f"{base}/init/error"

    def test_request_id_is_percent_encoded(self):
        endpoints = RuntimeEndpoints("127.0.0.1:9001")
        base = "http://127.0.0.1:9001/2018-06-01/runtime/invocation"

        assert endpoints.invocation_response("a/b?c#d") == f"{base}/a%2Fb%3Fc%23d/response"
        assert endpoints.invocation_error("../init") == f"{base}/..%2Finit/error"

    def test_scheme_and_trailing_slash(self):
        endpoints = RuntimeEndpoints("http://localhost:8080/")

        assert endpoints.base_url == "http://localhost:8080"
        assert endpoints.next_invocation == "http://localhost:8080/2018-06-01/runtime/invocation/next"


class TestInvocation:
    def test_header_accessors(self):
        inv = Invocation(
            request_id="abc-123",
            event={},
            headers=Headers(
                {
                    "Lambda-Runtime-Deadline-Ms": "1700000000000",
                    "Lambda-Runtime-Invoked-Function-Arn": "arn:aws:lambda:us-east-1:1:function:f",
                    "Lambda-Runtime-Trace-Id": "Root=1-abc",
                }
            ),
        )

        assert inv.deadline_ms == 1700000000000
        assert inv.invoked_function_arn == "arn:aws:lambda:us-east-1:1:function:f"
        assert inv.trace_id == "Root=1-abc"

    def test_missing_or_bad_deadline(self):
        assert Invocation("a", {}, {}).deadline_ms is None
        assert Invocation("a", {}, {}).remaining_time_ms() is None
        assert Invocation("a", {}, {DEADLINE_HEADER: "soon"}).deadline_ms is None

    def test_remaining_time(self):
        future = int(time.time() * 1000) + 60_000
        past = int(time.time() * 1000) - 1_000

        assert 0 < Invocation("a", {}, {DEADLINE_HEADER: str(future)}).remaining_time_ms() <= 60_000
        assert Invocation("a", {}, {DEADLINE_HEADER: str(past)}).remaining_time_ms() == 0


class TestInvocationFailure:
    def test_wire_keys(self):
        failure = InvocationFailure("boom", "Traceback ...", error_type="HANDLER.ValueError")

        assert failure.to_dict() == {"errorLocalizedDescription": "boom", "errorDetails": "Traceback ..."}


class TestDispatcherStats:
    def test_defaults(self):
        stats = DispatcherStats()

        assert stats.uptime_seconds == 0.0
        assert stats.to_dict()["polls"] == 0
        assert stats.to_dict()["last_poll_at"] is None

    def test_uptime(self):
        stats = DispatcherStats(started_at=datetime.now(UTC) - timedelta(seconds=5))

        assert stats.uptime_seconds >= 5
        assert stats.to_dict()["uptime_seconds"] >= 5
