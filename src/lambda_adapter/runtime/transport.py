"""HTTP transport for control-plane round trips.

One request in, one :class:`RequestResponse` out.  Connection failures,
resets and timeouts raise :class:`~lambda_adapter.core.errors.TransportError`;
any status code, 2xx or not, is a valid response and is returned as-is.

Usage::

    async with HttpTransport() as transport:
        res = await transport.request("GET", endpoints.next_invocation, timeout=60)
        request_id = res.headers.get("Lambda-Runtime-Aws-Request-Id")
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from lambda_adapter.core.errors import (
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
)
from lambda_adapter.core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST"})
DEFAULT_TIMEOUT = 60.0


class Headers(Mapping[str, str]):
    """Read-only header mapping with case-insensitive lookup.

    Keys are stored lower-cased; repeated headers are joined with ``", "``.

    >>> h = Headers({"Lambda-Runtime-Aws-Request-Id": "abc-123"})
    >>> h["lambda-runtime-aws-request-id"], h.get("LAMBDA-RUNTIME-AWS-REQUEST-ID")
    ('abc-123', 'abc-123')
    """

    __slots__ = ("_items",)

    def __init__(self, raw: Mapping[str, str] | Any = None):
        items: dict[str, str] = {}
        if raw is not None:
            pairs = raw.multi_items() if hasattr(raw, "multi_items") else (
                raw.items() if hasattr(raw, "items") else raw
            )
            for key, value in pairs:
                name = str(key).lower()
                if name in items:
                    items[name] = f"{items[name]}, {value}"
                else:
                    items[name] = str(value)
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_dict(self) -> dict[str, str]:
        return dict(self._items)

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"


class RequestResponse:
    """Status, headers and raw body of one control-plane response."""

    __slots__ = ("status_code", "headers", "body", "_text")

    def __init__(self, status_code: int, body: bytes, headers: Headers | Mapping[str, str]):
        self.status_code = status_code
        self.body = body
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self._text: str | None = None

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, computed once."""
        if self._text is None:
            self._text = self.body.decode("utf-8", errors="replace")
        return self._text

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def __repr__(self) -> str:
        return f"RequestResponse(status_code={self.status_code}, body={len(self.body)} bytes)"


@runtime_checkable
class Transport(Protocol):
    """What the dispatcher needs from an HTTP client."""

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResponse: ...

    async def aclose(self) -> None: ...


class HttpTransport:
    """:class:`Transport` backed by a pooled ``httpx.AsyncClient``.

    The client is created on first use so it binds to the event loop that
    actually runs the dispatcher.
    """

    def __init__(self, *, client: httpx.AsyncClient | None = None, max_connections: int = 4):
        self._client = client
        self._owns_client = client is None
        self._limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(limits=self._limits, timeout=DEFAULT_TIMEOUT)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResponse:
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported method {method!r}; expected one of {sorted(ALLOWED_METHODS)}")

        client = self._get_client()
        try:
            res = await client.request(
                method,
                url,
                content=body,
                headers=dict(headers) if headers else None,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(f"{method} {url} timed out after {timeout}s", cause=e).with_context(
                url=url, method=method
            ) from e
        except httpx.TransportError as e:
            raise TransportConnectionError(f"{method} {url} failed: {e}", cause=e).with_context(
                url=url, method=method
            ) from e

        logger.debug("transport_response", method=method, url=url, status_code=res.status_code)
        return RequestResponse(res.status_code, res.content, Headers(res.headers))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()


__all__ = [
    "ALLOWED_METHODS",
    "DEFAULT_TIMEOUT",
    "Headers",
    "RequestResponse",
    "Transport",
    "TransportError",
    "HttpTransport",
]
