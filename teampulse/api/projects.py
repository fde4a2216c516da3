"""Projects API router."""

from typing import List

from fastapi import APIRouter, Depends, status

from teampulse.core.deps import get_storage
from teampulse.core.exceptions import ResourceNotFoundError
from teampulse.core.security import require_approved
from teampulse.models.user import User
from teampulse.schemas.schemas import (
    ProjectCreate, ProjectOut, ProjectPatch, ProjectUpdateCreate, ProjectUpdateOut,
    changed_fields,
)
from teampulse.storage.base import Storage

router = APIRouter(prefix="/projects", tags=["projects"])


def _get_project_or_404(storage: Storage, project_id: str):
    project = storage.get_project(project_id)
    if project is None:
        raise ResourceNotFoundError("Project not found")
    return project


@router.get("", response_model=List[ProjectOut])
async def list_projects(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Projects owned by the current user."""
    return storage.list_projects(user.id)


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.create_project(user.id, **body.model_dump())


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return _get_project_or_404(storage, project_id)


@router.put("/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: str,
    body: ProjectPatch,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    fields = changed_fields(body, "title", "status", "priority")
    return storage.update_project(project_id, **fields)


@router.get("/{project_id}/updates", response_model=List[ProjectUpdateOut])
async def list_project_updates(
    project_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _get_project_or_404(storage, project_id)
    return storage.list_project_updates(project_id)


@router.post(
    "/{project_id}/updates",
    response_model=ProjectUpdateOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_project_update(
    project_id: str,
    body: ProjectUpdateCreate,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _get_project_or_404(storage, project_id)
    return storage.create_project_update(user.id, project_id, **body.model_dump())
