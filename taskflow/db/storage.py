# db/storage.py

"""
Repository over the six TaskFlow collections.

Single-collection reads and writes delegate to the collections; the
multi-entity lookups and the hour/count aggregates are answered here.
Lookups of a missing id return ``None`` (or an empty list / zero) and
never raise; only malformed stored data raises ``StorageFault``.
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from taskflow.db.collections import Collection, MemoryCollection
from taskflow.db.mongo import MongoCollection, connect
from taskflow.exceptions import MissingReferenceError, StorageFault
from taskflow.models.models import (
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberCreate,
    ProjectStats,
    Subtask,
    SubtaskCreate,
    Task,
    TaskCreate,
    TaskStatus,
    TimeLog,
    TimeLogCreate,
    User,
    UserCreate,
)

logger = logging.getLogger(__name__)


def sum_hours(logs: Iterable[TimeLog]) -> Decimal:
    """Exact decimal total of the text-stored ``hours`` values."""
    total = Decimal(0)
    for log in logs:
        try:
            hours = Decimal(log.hours)
        except (InvalidOperation, TypeError):
            raise StorageFault(f"Time log {log.id} has malformed hours {log.hours!r}") from None
        if not hours.is_finite():
            raise StorageFault(f"Time log {log.id} has non-finite hours {log.hours!r}")
        total += hours
    if not math.isfinite(float(total)):
        raise StorageFault(f"Time log total {total} is out of range")
    return total


class Storage:
    def __init__(
        self,
        users: Collection[User],
        projects: Collection[Project],
        tasks: Collection[Task],
        subtasks: Collection[Subtask],
        time_logs: Collection[TimeLog],
        project_members: Collection[ProjectMember],
        *,
        enforce_references: bool = True,
        client=None,
    ):
        self.users = users
        self.projects = projects
        self.tasks = tasks
        self.subtasks = subtasks
        self.time_logs = time_logs
        self.project_members = project_members
        self.enforce_references = enforce_references
        self._client = client

    @classmethod
    def in_memory(cls, *, enforce_references: bool = True) -> "Storage":
        return cls(
            MemoryCollection("users", User),
            MemoryCollection("projects", Project),
            MemoryCollection("tasks", Task, mutable_fields={"status"}),
            MemoryCollection("subtasks", Subtask, mutable_fields={"completed"}),
            MemoryCollection("time_logs", TimeLog),
            MemoryCollection("project_members", ProjectMember),
            enforce_references=enforce_references,
        )

    @classmethod
    def mongo(cls, db, *, enforce_references: bool = True, client=None) -> "Storage":
        return cls(
            MongoCollection(db, "users", User),
            MongoCollection(db, "projects", Project),
            MongoCollection(db, "tasks", Task, mutable_fields={"status"}),
            MongoCollection(db, "subtasks", Subtask, mutable_fields={"completed"}),
            MongoCollection(db, "time_logs", TimeLog),
            MongoCollection(db, "project_members", ProjectMember),
            enforce_references=enforce_references,
            client=client,
        )

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def _require(self, collection: Collection, record_id: Optional[int], entity: str) -> None:
        if not self.enforce_references or record_id is None:
            return
        if await collection.get(record_id) is None:
            raise MissingReferenceError(entity, record_id)

    # ---- users ----

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        matches = await self.users.find(email=email)
        return matches[0] if matches else None

    async def get_users(self) -> List[User]:
        return await self.users.list()

    async def create_user(self, data: UserCreate) -> User:
        user = await self.users.insert(data.model_dump(), unique=("email",))
        logger.info("Created user id=%s role=%s", user.id, user.role)
        return user

    # ---- projects ----

    async def get_project(self, project_id: int) -> Optional[Project]:
        return await self.projects.get(project_id)

    async def get_projects(self) -> List[Project]:
        return await self.projects.list()

    async def get_projects_by_user(self, user_id: int) -> List[Project]:
        memberships = await self.project_members.find(user_id=user_id)
        member_of = {m.project_id for m in memberships}
        created = await self.projects.find(created_by=user_id)
        joined = await self.projects.find(id=member_of) if member_of else []

        by_id = {p.id: p for p in created}
        for project in joined:
            by_id.setdefault(project.id, project)
        return [by_id[pid] for pid in sorted(by_id)]

    async def create_project(self, data: ProjectCreate) -> Project:
        await self._require(self.users, data.created_by, "user")
        project = await self.projects.insert(data.model_dump())
        logger.info("Created project id=%s by user=%s", project.id, project.created_by)
        return project

    # ---- tasks ----

    async def get_task(self, task_id: int) -> Optional[Task]:
        return await self.tasks.get(task_id)

    async def get_tasks(self) -> List[Task]:
        return await self.tasks.list()

    async def get_tasks_by_project(self, project_id: int) -> List[Task]:
        return await self.tasks.find(project_id=project_id)

    async def get_tasks_by_user(self, user_id: int) -> List[Task]:
        return await self.tasks.find(assigned_to=user_id)

    async def create_task(self, data: TaskCreate) -> Task:
        await self._require(self.projects, data.project_id, "project")
        await self._require(self.users, data.assigned_to, "user")
        await self._require(self.users, data.created_by, "user")
        task = await self.tasks.insert(data.model_dump())
        logger.info("Created task id=%s in project=%s", task.id, task.project_id)
        return task

    async def update_task_status(self, task_id: int, status: TaskStatus) -> Optional[Task]:
        # last write wins; there is no concurrency token
        return await self.tasks.update_field(task_id, "status", TaskStatus(status).value)

    # ---- subtasks ----

    async def get_subtasks_by_task(self, task_id: int) -> List[Subtask]:
        return await self.subtasks.find(task_id=task_id)

    async def create_subtask(self, data: SubtaskCreate) -> Subtask:
        await self._require(self.tasks, data.task_id, "task")
        return await self.subtasks.insert(data.model_dump())

    async def update_subtask_status(self, subtask_id: int, completed: bool) -> Optional[Subtask]:
        return await self.subtasks.update_field(subtask_id, "completed", bool(completed))

    # ---- time logs ----

    async def get_time_logs_by_task(self, task_id: int) -> List[TimeLog]:
        return await self.time_logs.find(task_id=task_id)

    async def get_time_logs_by_user(self, user_id: int) -> List[TimeLog]:
        return await self.time_logs.find(user_id=user_id)

    async def create_time_log(self, data: TimeLogCreate) -> TimeLog:
        await self._require(self.tasks, data.task_id, "task")
        await self._require(self.users, data.user_id, "user")
        log = await self.time_logs.insert(data.model_dump())
        logger.info("Logged %s hours on task=%s by user=%s", log.hours, log.task_id, log.user_id)
        return log

    # ---- project members ----

    async def get_project_members(self, project_id: int) -> List[User]:
        memberships = await self.project_members.find(project_id=project_id)
        user_ids = list(dict.fromkeys(m.user_id for m in memberships))
        if not user_ids:
            return []
        users = {u.id: u for u in await self.users.find(id=user_ids)}
        return [users[uid] for uid in user_ids if uid in users]

    async def add_project_member(self, data: ProjectMemberCreate) -> ProjectMember:
        await self._require(self.projects, data.project_id, "project")
        await self._require(self.users, data.user_id, "user")
        return await self.project_members.insert(data.model_dump())

    # ---- analytics ----

    async def get_hours_by_project(self, project_id: int) -> Decimal:
        task_ids = {t.id for t in await self.tasks.find(project_id=project_id)}
        if not task_ids:
            return Decimal(0)
        return sum_hours(await self.time_logs.find(task_id=task_ids))

    async def get_hours_by_user(self, user_id: int) -> Decimal:
        return sum_hours(await self.time_logs.find(user_id=user_id))

    async def get_project_stats(self) -> ProjectStats:
        return ProjectStats(
            active_projects=await self.projects.count(),
            completed_tasks=await self.tasks.count(status=TaskStatus.DONE.value),
            total_hours=sum_hours(await self.time_logs.list()),
            team_members=await self.users.count(),
        )


def build_storage(settings) -> Storage:
    """Pick the storage backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage (data is lost on restart)")
        return Storage.in_memory(enforce_references=settings.enforce_references)
    if settings.storage_backend == "mongo":
        client = connect(settings.mongodb_url)
        return Storage.mongo(
            client[settings.mongodb_db],
            enforce_references=settings.enforce_references,
            client=client,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")
