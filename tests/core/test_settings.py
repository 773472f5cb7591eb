"""Tests for environment-driven runtime settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from lambda_adapter.core.settings import (
    DEFAULT_RUNTIME_API,
    RuntimeSettings,
    clear_settings_cache,
    get_env,
    get_settings,
)


@pytest.fixture(autouse=True)
def no_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class TestRuntimeSettings:
    def test_defaults(self):
        settings = RuntimeSettings()

        assert settings.runtime_api == DEFAULT_RUNTIME_API == "localhost:8080"
        assert settings.handler is None
        assert settings.task_root is None
        assert settings.log_level == "INFO"
        assert settings.log_json is None
        assert settings.worker_threads == 3
        assert settings.poll_timeout == 60.0
        assert settings.post_timeout == 60.0
        assert settings.poll_backoff_base == 0.0

    def test_platform_variables(self, monkeypatch):
        monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", "127.0.0.1:9001")
        monkeypatch.setenv("_HANDLER", "app.handler")
        monkeypatch.setenv("LAMBDA_TASK_ROOT", "/var/task")

        settings = RuntimeSettings()

        assert settings.runtime_api == "127.0.0.1:9001"
        assert settings.handler == "app.handler"
        assert settings.task_root == Path("/var/task")

    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("LAMBDA_ADAPTER_RUNTIME_API", "10.0.0.1:9001")
        monkeypatch.setenv("LAMBDA_ADAPTER_LOG_LEVEL", "debug")
        monkeypatch.setenv("LAMBDA_ADAPTER_LOG_JSON", "true")
        monkeypatch.setenv("LAMBDA_ADAPTER_WORKER_THREADS", "5")
        monkeypatch.setenv("LAMBDA_ADAPTER_POLL_BACKOFF_BASE", "0.5")

        settings = RuntimeSettings()

        assert settings.runtime_api == "10.0.0.1:9001"
        assert settings.log_level == "debug"
        assert settings.log_json is True
        assert settings.worker_threads == 5
        assert settings.poll_backoff_base == 0.5

    def test_platform_name_wins(self, monkeypatch):
        monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", "127.0.0.1:9001")
        monkeypatch.setenv("LAMBDA_ADAPTER_RUNTIME_API", "10.0.0.1:9001")

        assert RuntimeSettings().runtime_api == "127.0.0.1:9001"

    @pytest.mark.parametrize("value, expected", [("127.0.0.1:9001/", "127.0.0.1:9001"), ("  ", DEFAULT_RUNTIME_API)])
    def test_runtime_api_normalized(self, monkeypatch, value, expected):
        monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", value)

        assert RuntimeSettings().runtime_api == expected

    def test_keyword_construction(self):
        settings = RuntimeSettings(runtime_api="127.0.0.1:9001", worker_threads=1)

        assert settings.runtime_api == "127.0.0.1:9001"
        assert settings.worker_threads == 1

    @pytest.mark.parametrize("field, value", [("worker_threads", 0), ("poll_timeout", 0), ("post_timeout", -1)])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            RuntimeSettings(**{field: value})

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("LAMBDA_ADAPTER_LOG_LEVEL=error\n")

        assert RuntimeSettings().log_level == "error"


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", "127.0.0.1:9001")

        assert get_settings().runtime_api == first.runtime_api
        assert get_settings(force_reload=True).runtime_api == "127.0.0.1:9001"

    def test_clear_cache(self, monkeypatch):
        first = get_settings()
        clear_settings_cache()

        assert get_settings() is not first


class TestGetEnv:
    def test_present_and_missing(self, monkeypatch):
        monkeypatch.setenv("LAMBDA_ADAPTER_SAMPLE", "value")
        monkeypatch.setenv("LAMBDA_ADAPTER_EMPTY", "")

        assert get_env("LAMBDA_ADAPTER_SAMPLE") == "value"
        assert get_env("LAMBDA_ADAPTER_EMPTY") is None
        assert get_env("LAMBDA_ADAPTER_NOT_SET") is None
