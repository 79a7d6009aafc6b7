# tests/test_mongo_storage.py

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from taskflow.db.storage import Storage
from taskflow.exceptions import DuplicateRecordError
from taskflow.models.models import (
    ProjectCreate,
    ProjectMemberCreate,
    TaskCreate,
    TaskStatus,
    TimeLogCreate,
    UserCreate,
)

mongomock_motor = pytest.importorskip("mongomock_motor")


def _storage() -> Storage:
    client = mongomock_motor.AsyncMongoMockClient()
    return Storage.mongo(client["taskflow_test"])


@pytest.mark.asyncio
async def test_mongo_ids_and_email_uniqueness() -> None:
    store = _storage()
    a = await store.create_user(UserCreate(email="a@example.com", name="A", role="admin"))
    b = await store.create_user(UserCreate(email="b@example.com", name="B"))

    assert (a.id, b.id) == (1, 2)
    with pytest.raises(DuplicateRecordError):
        await store.create_user(UserCreate(email="a@example.com", name="Again"))

    fetched = await store.get_user_by_email("b@example.com")
    assert fetched.id == b.id and fetched.role == "user"
    assert [u.id for u in await store.get_users()] == [1, 2]


@pytest.mark.asyncio
async def test_mongo_queries_and_aggregates() -> None:
    store = _storage()
    owner = await store.create_user(UserCreate(email="owner@example.com", name="Owner"))
    dev = await store.create_user(UserCreate(email="dev@example.com", name="Dev"))
    mine = await store.create_project(ProjectCreate(name="Mine", created_by=dev.id))
    theirs = await store.create_project(ProjectCreate(name="Theirs", created_by=owner.id))
    await store.add_project_member(ProjectMemberCreate(project_id=theirs.id, user_id=dev.id))
    await store.add_project_member(ProjectMemberCreate(project_id=mine.id, user_id=dev.id))

    assert [p.id for p in await store.get_projects_by_user(dev.id)] == [mine.id, theirs.id]
    assert [u.id for u in await store.get_project_members(theirs.id)] == [dev.id]

    task = await store.create_task(TaskCreate(title="T", project_id=theirs.id, created_by=owner.id))
    day = datetime(2024, 5, 6, tzinfo=timezone.utc)
    for hours in ("2", "2.5", "0.5"):
        await store.create_time_log(TimeLogCreate(task_id=task.id, user_id=dev.id, hours=hours, date=day))

    assert await store.get_hours_by_project(theirs.id) == Decimal("5.0")
    assert await store.get_hours_by_user(dev.id) == Decimal("5.0")

    updated = await store.update_task_status(task.id, TaskStatus.DONE)
    assert updated.status == "done"
    assert await store.update_task_status(999, TaskStatus.DONE) is None

    stats = await store.get_project_stats()
    assert (stats.active_projects, stats.completed_tasks, stats.team_members) == (2, 1, 2)
    assert stats.total_hours == Decimal("5.0")

    await store.close()
