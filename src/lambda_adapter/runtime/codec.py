"""JSON codec for invocation payloads."""

from __future__ import annotations

import json
from typing import Any

from lambda_adapter.core.errors import DecodeError, EncodeError


def decode_event(body: bytes) -> dict[str, Any]:
    """Decode an invocation body into a JSON object.

    Raises:
        DecodeError: body is not UTF-8, not JSON, or not a JSON object
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("Invocation payload is not valid UTF-8", cause=e) from e

    try:
        event = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invocation payload is not valid JSON: {e}", cause=e) from e

    if not isinstance(event, dict):
        raise DecodeError(f"Invocation payload must be a JSON object, got {type(event).__name__}")
    return event


def encode_payload(value: Any) -> bytes:
    """Encode a handler result (or error payload) as UTF-8 JSON.

    Raises:
        EncodeError: value is not JSON-serializable (NaN and infinity included)
    """
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodeError(f"Handler result is not JSON-serializable: {e}", cause=e) from e


__all__ = ["decode_event", "encode_payload"]
