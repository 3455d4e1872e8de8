"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from xtract.config import GOOGLEBOT_USER_AGENT, Settings


_VARS = (
    "XTRACT_LOGGING",
    "XTRACT_MAX_CONCURRENCY",
    "XTRACT_BATCH_TIMEOUT",
    "XTRACT_REQUEST_TIMEOUT",
    "XTRACT_FETCH_CEILING",
    "XTRACT_USER_AGENT",
    "XTRACT_BROWSER",
    "XTRACT_HEADLESS",
    "XTRACT_EXPORT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    s = Settings()
    assert s.logging_enabled is True
    assert s.max_concurrency == 5
    assert s.batch_timeout is None
    assert s.request_timeout == 55.0
    assert s.fetch_ceiling == 60.0
    assert s.user_agent == GOOGLEBOT_USER_AGENT
    assert s.browser == "chromium"
    assert s.headless is True
    assert s.export_dir == Path("exports")


def test_env_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("XTRACT_LOGGING", "off")
    clean_env.setenv("XTRACT_MAX_CONCURRENCY", "12")
    clean_env.setenv("XTRACT_BATCH_TIMEOUT", "30")
    clean_env.setenv("XTRACT_USER_AGENT", "custom/1.0")
    clean_env.setenv("XTRACT_HEADLESS", "false")

    s = Settings()
    assert s.logging_enabled is False
    assert s.max_concurrency == 12
    assert s.batch_timeout == 30.0
    assert s.user_agent == "custom/1.0"
    assert s.headless is False


def test_non_positive_batch_timeout_means_none(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("XTRACT_BATCH_TIMEOUT", "0")
    assert Settings().batch_timeout is None


def test_ensure_export_dir(tmp_path: Path) -> None:
    s = Settings(export_dir=tmp_path / "a" / "b")
    s.ensure_export_dir()
    assert s.export_dir.is_dir()
