"""Reference handlers — for smoke tests against a runtime emulator.

Usage::

    lambda-adapter run lambda_adapter.examples:double
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lambda_adapter.core.logging import get_logger

logger = get_logger(__name__)


def echo(event: dict[str, Any], headers: Mapping[str, str]) -> dict[str, Any]:
    """Return the event unchanged."""
    logger.info("echo_invoked", keys=len(event))
    return {"echoed": event}


async def double(event: dict[str, Any], headers: Mapping[str, str]) -> dict[str, Any]:
    """``{"n": 2}`` → ``{"result": 4}``."""
    return {"result": event["n"] * 2}


def fail(event: dict[str, Any], headers: Mapping[str, str]) -> dict[str, Any]:
    """Always raises, to exercise the error endpoint."""
    raise RuntimeError(event.get("message", "intentional test failure"))
