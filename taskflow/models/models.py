from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

MAX_HOURS_PER_LOG = Decimal(24)


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class TaskStatus(str, Enum):
    TODO = "todo"
    QA = "qa"
    DONE = "done"


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either spelling is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(APIModel):
    """A stored entity. Records are never mutated in place."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
        validate_default=True,
    )

    id: int
    created_at: datetime


# ---- stored entities ----

class User(Record):
    email: str
    name: str
    role: Role = Role.USER


class Project(Record):
    name: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    created_by: int


class Task(Record):
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    project_id: int
    assigned_to: Optional[int] = None
    created_by: int


class Subtask(Record):
    title: str
    completed: bool = False
    task_id: int


class TimeLog(Record):
    task_id: int
    user_id: int
    # kept as text so decimal values survive storage unchanged
    hours: str
    date: datetime
    notes: Optional[str] = None


class ProjectMember(Record):
    project_id: int
    user_id: int


# ---- insert shapes ----

class UserCreate(APIModel):
    email: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: Role = Role.USER


class ProjectCreate(APIModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    created_by: int


class TaskCreate(APIModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    project_id: int
    assigned_to: Optional[int] = None
    created_by: int


class SubtaskCreate(APIModel):
    title: str = Field(min_length=1)
    completed: bool = False
    task_id: int


class TimeLogCreate(APIModel):
    task_id: int
    user_id: int
    hours: str
    date: datetime
    notes: Optional[str] = None

    @field_validator("hours")
    @classmethod
    def hours_must_be_decimal(cls, value: str) -> str:
        value = value.strip()
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            raise ValueError("hours must be a decimal number") from None
        if not parsed.is_finite() or parsed <= 0:
            raise ValueError("hours must be a positive number")
        if parsed > MAX_HOURS_PER_LOG:
            raise ValueError(f"hours must not exceed {MAX_HOURS_PER_LOG}")
        return value


class ProjectMemberCreate(APIModel):
    project_id: int
    user_id: int


class TaskStatusUpdate(APIModel):
    status: TaskStatus


class SubtaskStatusUpdate(APIModel):
    completed: bool


# ---- analytics ----

class HoursSummary(APIModel):
    hours: Decimal

    @field_serializer("hours")
    def _hours_as_number(self, value: Decimal) -> float:
        return float(value)


class ProjectStats(APIModel):
    # every project counts as active: projects carry no lifecycle status
    active_projects: int
    completed_tasks: int
    total_hours: Decimal
    team_members: int

    @field_serializer("total_hours")
    def _total_hours_as_number(self, value: Decimal) -> float:
        return float(value)


# ---- AI suggestions ----

class LogSuggestionRequest(APIModel):
    task_title: str = Field(min_length=1)


class LogSuggestion(APIModel):
    suggestion: str


class SubtaskGenerationRequest(APIModel):
    project_name: str = Field(min_length=1)
    project_description: Optional[str] = None


class SuggestedSubtask(APIModel):
    title: str


class SubtaskSuggestions(APIModel):
    subtasks: List[SuggestedSubtask] = []


class AIStatus(APIModel):
    available: bool
    message: str
