from fastapi import Request

from taskflow.db.storage import Storage
from taskflow.services.llm_service import SuggestionService


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_suggestions(request: Request) -> SuggestionService:
    return request.app.state.suggestions
