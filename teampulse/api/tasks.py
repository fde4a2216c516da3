"""Tasks and work-log (user update) router."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from teampulse.core.deps import get_storage
from teampulse.core.exceptions import ResourceNotFoundError
from teampulse.core.security import require_approved
from teampulse.models.task import TaskStatus
from teampulse.models.user import User
from teampulse.schemas.schemas import (
    TaskCreate, TaskOut, TaskPatch, TaskWithProjectOut, UserMetricsOut,
    UserUpdateCreate, UserUpdateOut, changed_fields,
)
from teampulse.services import stats_service
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.tasks")

router = APIRouter(tags=["tasks"])


# ---- Tasks ----
@router.get("/tasks", response_model=List[TaskOut])
async def list_tasks(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_tasks(user.id)


@router.get("/tasks/user", response_model=List[TaskWithProjectOut])
async def list_tasks_with_projects(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_user_tasks(user.id)


@router.post("/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.create_task(user.id, **body.model_dump())


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    body: TaskPatch,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Edit one of the user's own tasks; other users' tasks look absent."""
    task = storage.get_task(task_id)
    if task is None or task.user_id != user.id:
        raise ResourceNotFoundError("Task not found")
    return storage.update_task(task_id, **changed_fields(body, "title", "status", "priority"))


# ---- Per-user views ----
@router.get("/user/tasks", response_model=List[TaskWithProjectOut])
async def user_tasks(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_user_tasks(user.id)


@router.get("/user/recent-tasks", response_model=List[TaskWithProjectOut])
async def user_recent_tasks(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_recent_tasks(user.id)


@router.get("/user/metrics", response_model=UserMetricsOut)
async def user_metrics(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return stats_service.user_metrics(storage.list_tasks(user.id), storage.list_projects(user.id))


# ---- User updates ----
@router.get("/user-updates", response_model=List[UserUpdateOut])
async def list_user_updates(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_user_updates(user.id)


@router.post("/user-updates", response_model=UserUpdateOut, status_code=status.HTTP_201_CREATED)
async def create_user_update(
    body: UserUpdateCreate,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Log work; a COMPLETED update closes the task it refers to."""
    if body.task_id:
        task = storage.get_task(body.task_id)
        if task is None or task.user_id != user.id:
            raise ResourceNotFoundError("Task not found")

    update = storage.create_user_update(user.id, **body.model_dump())
    if update.task_id and update.status == TaskStatus.COMPLETED:
        storage.update_task(update.task_id, status=TaskStatus.COMPLETED)
        logger.info("Task %s completed via update %s", update.task_id, update.id)
    return update
