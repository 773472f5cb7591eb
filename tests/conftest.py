"""
Shared pytest fixtures for lambda-adapter tests.

This module provides:
- Environment isolation (no AWS_* / LAMBDA_ADAPTER_* leakage between tests)
- Logging reset after tests that call configure_logging()
- A scripted in-memory control plane fixture
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest
import structlog

# Ensure lambda_adapter and tests._support are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from lambda_adapter.core.settings import RuntimeSettings, clear_settings_cache
from tests._support.control_plane import FakeTransport

_ENV_VARS = (
    "AWS_LAMBDA_RUNTIME_API",
    "_HANDLER",
    "LAMBDA_TASK_ROOT",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Strip runtime-related variables and reset cached settings."""
    for name in list(os.environ):
        if name in _ENV_VARS or name.startswith("LAMBDA_ADAPTER_"):
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any configure_logging() done by a test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def settings() -> RuntimeSettings:
    return RuntimeSettings()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
