"""Unit tests for environment-backed application settings."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from errmap.core.config import DEFAULT_APP_NAME
from errmap.core.config import DEFAULT_LOG_LEVEL
from errmap.core.config import get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ERRMAP_APP_NAME", raising=False)
    monkeypatch.delenv("ERRMAP_LOG_LEVEL", raising=False)

    settings = get_settings()

    assert settings.app_name == DEFAULT_APP_NAME
    assert settings.log_level == DEFAULT_LOG_LEVEL


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ERRMAP_APP_NAME", "orders-api")
    monkeypatch.setenv("ERRMAP_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.app_name == "orders-api"
    assert settings.log_level == "DEBUG"
