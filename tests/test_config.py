"""Tests for config.py: tuning model bounds and environment overrides."""

import pytest
from pydantic import ValidationError

from intonation.config import Settings, TuningConfig


def test_tuning_defaults():
    cfg = TuningConfig()
    assert cfg.reference_pitch == 440.0
    assert cfg.confidence_gate == 0.9


@pytest.mark.parametrize("kwargs", [
    {"reference_pitch": 0.0},
    {"reference_pitch": float("nan")},
    {"confidence_gate": -0.1},
])
def test_tuning_rejects_out_of_range(kwargs):
    with pytest.raises(ValidationError):
        TuningConfig(**kwargs)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("INTONATION_LOG_LEVEL", "debug")
    monkeypatch.setenv("INTONATION_CORS_ORIGINS", "http://a.test, http://b.test,")
    settings = Settings.from_env()
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("INTONATION_LOG_LEVEL", raising=False)
    monkeypatch.delenv("INTONATION_CORS_ORIGINS", raising=False)
    settings = Settings.from_env()
    assert settings.log_level == "INFO"
    assert "http://localhost:5173" in settings.cors_origins
