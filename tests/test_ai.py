# tests/test_ai.py

from __future__ import annotations

import pytest
from google.api_core import exceptions as google_exceptions

from taskflow.exceptions import AdapterError
from taskflow.services.llm_service import SuggestionService, finish_sentence, parse_subtasks

from .fakes import FakeGenerativeModel


def test_finish_sentence_adds_terminal_punctuation() -> None:
    assert finish_sentence("  Implemented login form ") == "Implemented login form."
    assert finish_sentence("Done!") == "Done!"
    assert finish_sentence("   ") == ""


def test_parse_subtasks_tolerates_surrounding_text() -> None:
    reply = 'Sure:\n```json\n{"subtasks": [{"title": " Design schema "}, {"title": ""}, {"nope": 1}]}\n```'
    assert [s.title for s in parse_subtasks(reply)] == ["Design schema"]


@pytest.mark.parametrize("reply", ["no json here", '{"subtasks": "x"}', "[1, 2]"])
def test_parse_subtasks_rejects_unusable_output(reply) -> None:
    with pytest.raises(AdapterError):
        parse_subtasks(reply)


@pytest.mark.asyncio
async def test_suggest_log_uses_task_title() -> None:
    model = FakeGenerativeModel("Reviewed the checkout flow and fixed two bugs")
    service = SuggestionService(model=model)

    suggestion = await service.suggest_log("Fix checkout")

    assert suggestion == "Reviewed the checkout flow and fixed two bugs."
    assert '"Fix checkout"' in model.prompts[0]


@pytest.mark.asyncio
async def test_generate_subtasks_defaults_missing_description() -> None:
    model = FakeGenerativeModel('{"subtasks": [{"title": "Set up CI"}, {"title": "Write API"}]}')
    service = SuggestionService(model=model)

    subtasks = await service.generate_subtasks("Billing")

    assert [s.title for s in subtasks] == ["Set up CI", "Write API"]
    assert "No description provided" in model.prompts[0]


@pytest.mark.asyncio
async def test_timeout_becomes_adapter_error() -> None:
    service = SuggestionService(model=FakeGenerativeModel(delay=1.0), timeout_seconds=0.01)

    with pytest.raises(AdapterError, match="timed out"):
        await service.suggest_log("Slow task")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, message",
    [
        (google_exceptions.ResourceExhausted("quota"), "busy"),
        (google_exceptions.PermissionDenied("key"), "not properly configured"),
        (ConnectionError("unreachable"), "request failed"),
    ],
)
async def test_upstream_errors_are_mapped(error, message) -> None:
    service = SuggestionService(model=FakeGenerativeModel(error=error))

    with pytest.raises(AdapterError, match=message):
        await service.suggest_log("Anything")


@pytest.mark.asyncio
async def test_unconfigured_service_is_unavailable() -> None:
    service = SuggestionService(api_key=None)

    assert service.available is False
    with pytest.raises(AdapterError, match="not properly configured"):
        await service.generate_subtasks("Anything")


@pytest.mark.asyncio
async def test_empty_suggestion_is_rejected() -> None:
    service = SuggestionService(model=FakeGenerativeModel("   "))

    with pytest.raises(AdapterError):
        await service.suggest_log("Anything")


# ---- HTTP ----

def test_suggest_log_endpoint(client, fake_model) -> None:
    fake_model.next_text = "Wrote unit tests for the parser"

    response = client.post("/api/ai/suggest-log", json={"taskTitle": "Parser"})

    assert response.status_code == 200
    assert response.json() == {"suggestion": "Wrote unit tests for the parser."}


def test_suggest_log_requires_title(client) -> None:
    assert client.post("/api/ai/suggest-log", json={}).status_code == 400
    assert client.post("/api/ai/suggest-log", json={"taskTitle": ""}).status_code == 400


def test_generate_subtasks_endpoint(client, fake_model) -> None:
    fake_model.next_text = '{"subtasks": [{"title": "Plan"}, {"title": "Build"}, {"title": "Ship"}]}'

    response = client.post(
        "/api/ai/generate-subtasks",
        json={"projectName": "Website", "projectDescription": "Marketing site"},
    )

    assert response.status_code == 200
    assert response.json() == {"subtasks": [{"title": "Plan"}, {"title": "Build"}, {"title": "Ship"}]}
    assert "Marketing site" in fake_model.prompts[0]


def test_adapter_failure_is_isolated_from_the_store(client, fake_model) -> None:
    user = client.post("/api/users", json={"email": "a@example.com", "name": "A"}).json()
    fake_model.error = ConnectionError("unreachable")

    response = client.post("/api/ai/suggest-log", json={"taskTitle": "Anything"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate AI suggestion: AI service request failed."
    assert client.get("/api/users").json() == [user]
    assert client.get("/api/tasks").json() == []


def test_generate_subtasks_failure(client, fake_model) -> None:
    fake_model.next_text = "I cannot help with that"

    response = client.post("/api/ai/generate-subtasks", json={"projectName": "Website"})

    assert response.status_code == 500
    assert response.json()["detail"].startswith("Failed to generate subtasks:")


def test_ai_status(client) -> None:
    assert client.get("/api/ai/status").json() == {
        "available": True,
        "message": "AI features are ready to help with your tasks",
    }
