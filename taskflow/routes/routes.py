from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from taskflow.db.storage import Storage
from taskflow.models.models import (
    HoursSummary,
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberCreate,
    ProjectStats,
    Subtask,
    SubtaskCreate,
    SubtaskStatusUpdate,
    Task,
    TaskCreate,
    TaskStatusUpdate,
    TimeLog,
    TimeLogCreate,
    User,
    UserCreate,
)
from taskflow.routes.deps import get_storage

router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=List[User])
async def get_users(storage: Storage = Depends(get_storage)):
    return await storage.get_users()


@router.get("/users/email/{email}", response_model=User)
async def get_user_by_email(email: str, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_email(email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: int, storage: Storage = Depends(get_storage)):
    user = await storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_user(user)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@router.get("/projects", response_model=List[Project])
async def get_projects(storage: Storage = Depends(get_storage)):
    return await storage.get_projects()


@router.get("/projects/user/{user_id}", response_model=List[Project])
async def get_user_projects(user_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_projects_by_user(user_id)


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: int, storage: Storage = Depends(get_storage)):
    project = await storage.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(project: ProjectCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_project(project)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@router.get("/tasks", response_model=List[Task])
async def get_tasks(storage: Storage = Depends(get_storage)):
    return await storage.get_tasks()


@router.get("/tasks/project/{project_id}", response_model=List[Task])
async def get_project_tasks(project_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_tasks_by_project(project_id)


@router.get("/tasks/user/{user_id}", response_model=List[Task])
async def get_user_tasks(user_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_tasks_by_user(user_id)


@router.get("/tasks/{task_id}", response_model=Task)
async def get_task(task_id: int, storage: Storage = Depends(get_storage)):
    task = await storage.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(task: TaskCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_task(task)


@router.patch("/tasks/{task_id}/status", response_model=Task)
async def update_task_status(
    task_id: int, update: TaskStatusUpdate, storage: Storage = Depends(get_storage)
):
    task = await storage.update_task_status(task_id, update.status)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


# ---------------------------------------------------------------------------
# Subtasks
# ---------------------------------------------------------------------------

@router.get("/subtasks/task/{task_id}", response_model=List[Subtask])
async def get_task_subtasks(task_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_subtasks_by_task(task_id)


@router.post("/subtasks", response_model=Subtask, status_code=status.HTTP_201_CREATED)
async def create_subtask(subtask: SubtaskCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_subtask(subtask)


@router.patch("/subtasks/{subtask_id}/status", response_model=Subtask)
async def update_subtask_status(
    subtask_id: int, update: SubtaskStatusUpdate, storage: Storage = Depends(get_storage)
):
    subtask = await storage.update_subtask_status(subtask_id, update.completed)
    if not subtask:
        raise HTTPException(status_code=404, detail="Subtask not found")
    return subtask


# ---------------------------------------------------------------------------
# Time logs
# ---------------------------------------------------------------------------

@router.get("/time-logs/task/{task_id}", response_model=List[TimeLog])
async def get_task_time_logs(task_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_time_logs_by_task(task_id)


@router.get("/time-logs/user/{user_id}", response_model=List[TimeLog])
async def get_user_time_logs(user_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_time_logs_by_user(user_id)


@router.post("/time-logs", response_model=TimeLog, status_code=status.HTTP_201_CREATED)
async def create_time_log(time_log: TimeLogCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_time_log(time_log)


# ---------------------------------------------------------------------------
# Project members
# ---------------------------------------------------------------------------

@router.get("/project-members/{project_id}", response_model=List[User])
async def get_project_members(project_id: int, storage: Storage = Depends(get_storage)):
    return await storage.get_project_members(project_id)


@router.post("/project-members", response_model=ProjectMember, status_code=status.HTTP_201_CREATED)
async def add_project_member(member: ProjectMemberCreate, storage: Storage = Depends(get_storage)):
    return await storage.add_project_member(member)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@router.get("/analytics/project/{project_id}/hours", response_model=HoursSummary)
async def get_project_hours(project_id: int, storage: Storage = Depends(get_storage)):
    return HoursSummary(hours=await storage.get_hours_by_project(project_id))


@router.get("/analytics/user/{user_id}/hours", response_model=HoursSummary)
async def get_user_hours(user_id: int, storage: Storage = Depends(get_storage)):
    return HoursSummary(hours=await storage.get_hours_by_user(user_id))


@router.get("/analytics/stats", response_model=ProjectStats)
async def get_stats(storage: Storage = Depends(get_storage)):
    return await storage.get_project_stats()


__all__ = ["router"]
