"""Runtime settings for the Lambda adapter.

The control-plane address and handler reference come from the variables the
platform sets for a custom runtime (``AWS_LAMBDA_RUNTIME_API``, ``_HANDLER``,
``LAMBDA_TASK_ROOT``).  Everything else the adapter adds is namespaced with
``LAMBDA_ADAPTER_`` (e.g. ``LAMBDA_ADAPTER_LOG_LEVEL=debug``).

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not mid-invocation
    - **Platform names first:** AWS variables are read under their own names
    - **Sensible defaults:** ``localhost:8080`` works with the runtime emulator

Examples:
    >>> from lambda_adapter.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.runtime_api
    'localhost:8080'

Tags:
    settings, configuration, pydantic, environment, lambda-runtime

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RUNTIME_API = "localhost:8080"


class RuntimeSettings(BaseSettings):
    """Adapter configuration.

    Fields
    ──────
    runtime_api        : ``host:port`` of the control plane
    handler            : Handler reference (``module.attr`` or ``module:attr``)
    task_root          : Directory the handler is imported from
    log_level          : debug / info / warn / error
    log_json           : Force JSON (True) or console (False) output
    worker_threads     : Size of the dispatcher's worker pool
    poll_timeout       : Seconds bounding the "next invocation" round trip
    post_timeout       : Seconds bounding a response / error post
    poll_backoff_base  : First delay after a failed poll (0 = re-poll at once)
    poll_backoff_max   : Cap on the delay between failed polls
    """

    model_config = SettingsConfigDict(
        env_prefix="LAMBDA_ADAPTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Control plane ────────────────────────────────────────────
    runtime_api: str = Field(
        default=DEFAULT_RUNTIME_API,
        validation_alias=AliasChoices("AWS_LAMBDA_RUNTIME_API", "LAMBDA_ADAPTER_RUNTIME_API"),
    )
    handler: str | None = Field(
        default=None,
        validation_alias=AliasChoices("_HANDLER", "LAMBDA_ADAPTER_HANDLER"),
    )
    task_root: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("LAMBDA_TASK_ROOT", "LAMBDA_ADAPTER_TASK_ROOT"),
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Dispatcher ───────────────────────────────────────────────
    worker_threads: int = Field(default=3, ge=1)
    poll_timeout: float = Field(default=60.0, gt=0)
    post_timeout: float = Field(default=60.0, gt=0)
    poll_backoff_base: float = Field(default=0.0, ge=0)
    poll_backoff_max: float = Field(default=30.0, ge=0)

    @field_validator("runtime_api")
    @classmethod
    def _strip_runtime_api(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        return value or DEFAULT_RUNTIME_API


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, RuntimeSettings] = {}


def get_settings(*, force_reload: bool = False) -> RuntimeSettings:
    """Load, validate, and cache a :class:`RuntimeSettings` instance."""
    if not force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = RuntimeSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    _settings_cache.clear()


def get_env(name: str) -> str | None:
    """Look up a single process environment variable."""
    value = os.environ.get(name)
    return value if value else None


__all__ = [
    "DEFAULT_RUNTIME_API",
    "RuntimeSettings",
    "get_settings",
    "clear_settings_cache",
    "get_env",
]
