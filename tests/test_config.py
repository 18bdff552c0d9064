"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from nif_lookup.core.config import AppSettings, CacheSettings, SourceSettings


def test_source_defaults():
    cfg = SourceSettings()

    assert cfg.timeout_seconds == 20
    assert cfg.racius_cooldown_seconds == 60
    assert cfg.portugalio_cooldown_seconds == 60
    assert cfg.europa_cooldown_seconds == 0
    assert cfg.vies_requester_member_state == "PT"


def test_source_settings_read_prefixed_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SOURCE_RACIUS_COOLDOWN_SECONDS", "5")
    monkeypatch.setenv("SOURCE_TIMEOUT_SECONDS", "2.5")

    cfg = SourceSettings()

    assert cfg.racius_cooldown_seconds == 5
    assert cfg.timeout_seconds == 2.5


def test_negative_cooldown_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SOURCE_EUROPA_COOLDOWN_SECONDS", "-1")

    with pytest.raises(ValidationError):
        SourceSettings()


@pytest.mark.parametrize("variable", ["PORT", "APP_PORT"])
def test_port_accepts_both_variables(monkeypatch: pytest.MonkeyPatch, variable: str):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("APP_PORT", raising=False)
    monkeypatch.setenv(variable, "9000")

    assert AppSettings().port == 9000


def test_cache_directory_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CACHE_DIRECTORY", raising=False)

    assert CacheSettings().directory == "nif"
