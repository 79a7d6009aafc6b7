import asyncio
import json
import logging
from typing import List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from taskflow.exceptions import AdapterError
from taskflow.models.models import SuggestedSubtask

logger = logging.getLogger(__name__)

MAX_SUGGESTION_CHARS = 1000

NOT_CONFIGURED = "AI service is not properly configured. Please contact support."
TIMED_OUT = "AI request timed out. Please try again."
BUSY = "AI service is currently busy. Please try again in a moment."
FAILED = "AI service request failed."

LOG_PROMPT = """You are a helpful assistant that writes professional work log entries from task titles.

Write a concise, professional log entry describing typical work done for the task below.
Keep it under 100 words and focus on concrete actions. Reply with the entry text only.

Task: "{task_title}"
"""

SUBTASKS_PROMPT = """You are a project management assistant.

Generate a list of 3-6 realistic subtasks for a software project based on its name and description.
Keep titles concise and actionable.

Project: {project_name}

Description: {project_description}

Format your response as a JSON object like this:
{{"subtasks": [{{"title": "Subtask title"}}]}}

Ensure the output is valid JSON and can be parsed directly.
"""


def finish_sentence(text: str) -> str:
    """Trim and make sure the suggestion ends with terminal punctuation."""
    text = text.strip()
    if text and text[-1] not in ".!?":
        text += "."
    return text


def parse_subtasks(response_text: str) -> List[SuggestedSubtask]:
    json_start = response_text.find("{")
    json_end = response_text.rfind("}") + 1
    json_str = response_text[json_start:json_end] if json_start >= 0 else response_text

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        raise AdapterError("AI service returned an unreadable subtask list.") from None

    items = data.get("subtasks") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise AdapterError("AI service returned an unreadable subtask list.")

    subtasks = []
    for item in items:
        title = item.get("title") if isinstance(item, dict) else None
        if isinstance(title, str) and title.strip():
            subtasks.append(SuggestedSubtask(title=title.strip()))
    return subtasks


class SuggestionService:
    """
    Gemini-backed helper for log notes and subtask lists.

    Every call is awaited with a timeout; any failure surfaces as
    ``AdapterError`` with a message safe to show to users.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-1.5-flash",
        timeout_seconds: float = 20.0,
        model=None,
    ):
        self.timeout_seconds = timeout_seconds
        self.model = model
        if self.model is None and api_key:
            genai.configure(api_key=api_key)
            generation_config = {
                "temperature": 0.7,
                "top_p": 1,
                "top_k": 1,
                "max_output_tokens": 1024,
            }
            self.model = genai.GenerativeModel(model_name=model_name, generation_config=generation_config)

    @property
    def available(self) -> bool:
        return self.model is not None

    async def _generate(self, prompt: str) -> str:
        if self.model is None:
            raise AdapterError(NOT_CONFIGURED)

        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("AI request timed out after %ss", self.timeout_seconds)
            raise AdapterError(TIMED_OUT) from None
        except google_exceptions.ResourceExhausted as e:
            logger.warning("AI quota exhausted: %s", e)
            raise AdapterError(BUSY) from e
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            logger.error("AI credentials rejected: %s", e)
            raise AdapterError(NOT_CONFIGURED) from e
        except Exception as e:
            logger.exception("AI request failed")
            raise AdapterError(FAILED) from e

        try:
            return response.text
        except ValueError as e:
            # raised by the SDK when the candidate was blocked or empty
            raise AdapterError("AI service returned no content.") from e

    async def suggest_log(self, task_title: str) -> str:
        text = await self._generate(LOG_PROMPT.format(task_title=task_title))
        suggestion = finish_sentence(text or "")
        if not suggestion or len(suggestion) > MAX_SUGGESTION_CHARS:
            raise AdapterError("AI service returned an unusable suggestion.")
        return suggestion

    async def generate_subtasks(
        self, project_name: str, project_description: Optional[str] = None
    ) -> List[SuggestedSubtask]:
        prompt = SUBTASKS_PROMPT.format(
            project_name=project_name,
            project_description=project_description or "No description provided",
        )
        subtasks = parse_subtasks(await self._generate(prompt))
        logger.info("Generated %d subtasks for project %r", len(subtasks), project_name)
        return subtasks
