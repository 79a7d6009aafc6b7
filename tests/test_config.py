# tests/test_config.py

from __future__ import annotations

import pytest

from taskflow.config import Settings
from taskflow.db.storage import build_storage


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("TASKFLOW_STORAGE", " Memory ")
    monkeypatch.setenv("ENFORCE_REFERENCES", "no")
    monkeypatch.setenv("AI_TIMEOUT_SECONDS", "not-a-number")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://app.example.com")
    monkeypatch.setenv("GEMINI_API_KEY", "")

    settings = Settings.from_env()

    assert settings.storage_backend == "memory"
    assert settings.enforce_references is False
    assert settings.ai_timeout_seconds == 20.0
    assert settings.cors_origins == ("http://localhost:5173", "https://app.example.com")
    assert settings.gemini_api_key is None


def test_build_storage_rejects_unknown_backend() -> None:
    with pytest.raises(ValueError):
        build_storage(Settings(storage_backend="postgres"))


def test_build_storage_passes_reference_policy() -> None:
    store = build_storage(Settings(enforce_references=False))
    assert store.enforce_references is False
