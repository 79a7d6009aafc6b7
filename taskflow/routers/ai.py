from fastapi import APIRouter, Depends, HTTPException

from taskflow.exceptions import AdapterError
from taskflow.models.models import (
    AIStatus,
    LogSuggestion,
    LogSuggestionRequest,
    SubtaskGenerationRequest,
    SubtaskSuggestions,
)
from taskflow.routes.deps import get_suggestions
from taskflow.services.llm_service import SuggestionService

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/suggest-log", response_model=LogSuggestion)
async def suggest_log(
    request: LogSuggestionRequest, suggestions: SuggestionService = Depends(get_suggestions)
):
    try:
        suggestion = await suggestions.suggest_log(request.task_title)
    except AdapterError as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate AI suggestion: {e}")
    return LogSuggestion(suggestion=suggestion)


@router.post("/generate-subtasks", response_model=SubtaskSuggestions)
async def generate_subtasks(
    request: SubtaskGenerationRequest, suggestions: SuggestionService = Depends(get_suggestions)
):
    try:
        subtasks = await suggestions.generate_subtasks(
            request.project_name, request.project_description
        )
    except AdapterError as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate subtasks: {e}")
    return SubtaskSuggestions(subtasks=subtasks)


@router.get("/status", response_model=AIStatus)
async def ai_status(suggestions: SuggestionService = Depends(get_suggestions)):
    if suggestions.available:
        return AIStatus(available=True, message="AI features are ready to help with your tasks")
    return AIStatus(available=False, message="AI features are currently unavailable")
