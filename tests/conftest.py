# tests/conftest.py

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from taskflow.config import Settings
from taskflow.db.storage import Storage
from taskflow.main import create_app
from taskflow.services.llm_service import SuggestionService

from .fakes import FakeGenerativeModel


@pytest.fixture()
def settings() -> Settings:
    """Explicit settings so tests never depend on the developer's .env."""
    return Settings(storage_backend="memory", gemini_api_key=None, ai_timeout_seconds=0.5)


@pytest.fixture()
def storage() -> Storage:
    return Storage.in_memory()


@pytest.fixture()
def fake_model() -> FakeGenerativeModel:
    return FakeGenerativeModel()


@pytest.fixture()
def suggestions(fake_model: FakeGenerativeModel, settings: Settings) -> SuggestionService:
    return SuggestionService(model=fake_model, timeout_seconds=settings.ai_timeout_seconds)


@pytest.fixture()
def client(settings: Settings, storage: Storage, suggestions: SuggestionService):
    app = create_app(settings, storage=storage, suggestions=suggestions)
    with TestClient(app) as test_client:
        yield test_client
