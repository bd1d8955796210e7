from __future__ import annotations

import pytest

from apr_tracker.shared.config import DEFAULT_TRACKED_POOLS, get_settings


_ENV_VARS = (
    "TRACKED_POOLS",
    "SNAPSHOT_INTERVAL_MINUTES",
    "INITIAL_HOURS_BACK",
    "RETENTION_DAYS",
    "CLEANUP_HOUR_UTC",
    "SCHEDULER_ENABLED",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = get_settings()

    assert settings.tracked_pools == DEFAULT_TRACKED_POOLS
    assert settings.snapshot_interval_minutes == 60
    assert settings.initial_hours_back == 48
    assert settings.retention_days == 90
    assert settings.cleanup_hour_utc == 2
    assert settings.scheduler_enabled is True
    assert settings.log_level == "INFO"


def test_overrides_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TRACKED_POOLS", " 0xAAA , ,0xbbb ")
    monkeypatch.setenv("SNAPSHOT_INTERVAL_MINUTES", "15")
    monkeypatch.setenv("RETENTION_DAYS", "30")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.tracked_pools == ("0xaaa", "0xbbb")
    assert settings.snapshot_interval_minutes == 15
    assert settings.retention_days == 30
    assert settings.scheduler_enabled is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SNAPSHOT_INTERVAL_MINUTES", "0"),
        ("CLEANUP_HOUR_UTC", "24"),
        ("TRACKED_POOLS", " , "),
    ],
)
def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        get_settings()
