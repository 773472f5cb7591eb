"""
Scripted, in-memory control plane for dispatcher tests.

Usage in test code::

    from tests._support.control_plane import FakeTransport, invocation

    transport = FakeTransport([invocation("abc-123", {"n": 2})])
    dispatcher = LambdaEventDispatcher(handler, RUNTIME_API, transport=transport)
    transport.on_exhausted = dispatcher.stop
    await dispatcher.run()
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from lambda_adapter.runtime.transport import RequestResponse

RUNTIME_API = "127.0.0.1:9001"
BASE = f"http://{RUNTIME_API}/2018-06-01/runtime"


@dataclass
class Call:
    method: str
    url: str
    body: bytes | None
    timeout: float
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        return json.loads(self.body or b"null")


class FakeTransport:
    """Scripted transport.

    ``GET`` calls consume *responses* in order; an exception in the script
    is raised instead of returned.  Once the script is exhausted,
    ``on_exhausted`` is called (typically ``dispatcher.stop``) and an empty
    poll is returned.  ``POST`` calls succeed unless ``post_failures``
    holds an exception to raise.
    """

    def __init__(self, responses: list[Any] | None = None):
        self.responses = list(responses or [])
        self.post_failures: list[BaseException] = []
        self.calls: list[Call] = []
        self.on_exhausted: Callable[[], None] | None = None
        self.closed = False

    async def request(self, method, url, body=None, timeout=60.0, headers=None) -> RequestResponse:
        self.calls.append(Call(method, url, body, timeout, dict(headers or {})))
        if method == "GET":
            if not self.responses:
                if self.on_exhausted is not None:
                    self.on_exhausted()
                return RequestResponse(200, b"", {})
            item = self.responses.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        if self.post_failures:
            raise self.post_failures.pop(0)
        return RequestResponse(202, b'{"status":"OK"}', {})

    async def aclose(self) -> None:
        self.closed = True

    @property
    def gets(self) -> list[Call]:
        return [c for c in self.calls if c.method == "GET"]

    @property
    def posts(self) -> list[Call]:
        return [c for c in self.calls if c.method == "POST"]


def invocation(
    request_id: str = "abc-123",
    body: Any = None,
    *,
    raw: bytes | None = None,
    header_name: str = "lambda-runtime-aws-request-id",
    headers: dict[str, str] | None = None,
) -> RequestResponse:
    """Build a "next invocation" response carrying *request_id*."""
    payload = raw if raw is not None else json.dumps(body if body is not None else {}).encode()
    all_headers = {header_name: request_id}
    all_headers.update(headers or {})
    return RequestResponse(200, payload, all_headers)


def empty_poll() -> RequestResponse:
    """A poll response with no request id: no work."""
    return RequestResponse(200, b"", {"content-type": "application/json"})
