"""Tests for invocation payload decoding and result encoding."""

from __future__ import annotations

import json

import pytest

from lambda_adapter.core.errors import DecodeError, EncodeError
from lambda_adapter.runtime.codec import decode_event, encode_payload


class TestDecodeEvent:
    def test_json_object(self):
        assert decode_event(b'{"n": 2, "tags": ["a"]}') == {"n": 2, "tags": ["a"]}

    def test_unicode(self):
        assert decode_event('{"name": "Zoë"}'.encode()) == {"name": "Zoë"}

    def test_not_json(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_event(b"not-json")

        assert isinstance(exc_info.value.cause, json.JSONDecodeError)
        assert "not valid JSON" in exc_info.value.message

    def test_not_utf8(self):
        with pytest.raises(DecodeError, match="UTF-8"):
            decode_event(b"\xff\xfe{}")

    @pytest.mark.parametrize("body", [b"[1, 2]", b'"text"', b"42", b"null"])
    def test_not_an_object(self, body):
        with pytest.raises(DecodeError, match="must be a JSON object"):
            decode_event(body)

    def test_empty_body(self):
        with pytest.raises(DecodeError):
            decode_event(b"")


class TestEncodePayload:
    def test_round_trip(self):
        value = {"result": 4, "nested": {"list": [1, 2.5, None, True]}, "text": "héllo"}

        assert json.loads(encode_payload(value)) == value

    def test_utf8_output(self):
        assert encode_payload({"name": "Zoë"}) == '{"name": "Zoë"}'.encode()

    def test_unserializable(self):
        with pytest.raises(EncodeError, match="not JSON-serializable"):
            encode_payload({"x": object()})

    def test_nan_rejected(self):
        with pytest.raises(EncodeError):
            encode_payload({"x": float("nan")})
