"""Admin API router: approvals, roles, teams and organisation-wide views."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from teampulse.core.deps import get_storage
from teampulse.core.security import require_admin
from teampulse.models.project import ProjectStatus
from teampulse.models.task import TaskStatus
from teampulse.models.user import User
from teampulse.schemas.schemas import (
    AdminMetrics, MembershipDetailOut, MembershipOut, MembershipStatusUpdate, ProjectOut,
    RecentUpdateOut, TeamCreate, TeamOut, UserOut, UserRoleUpdate, UserStatusUpdate,
)
from teampulse.services import stats_service
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


# ---- Teams ----
@router.get("/teams", response_model=List[TeamOut])
async def admin_list_teams(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return storage.list_teams()


@router.post("/teams", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def admin_create_team(
    body: TeamCreate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    team = storage.create_team(admin.id, **body.model_dump())
    logger.info("Admin %s created team %s", admin.id, team.id)
    return team


# ---- Users ----
@router.get("/users", response_model=List[UserOut])
async def admin_list_users(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """All users, newest first (admin only)."""
    return storage.list_users()


@router.patch("/users/{user_id}/status", response_model=UserOut)
async def admin_update_user_status(
    user_id: str,
    body: UserStatusUpdate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """Approve or reject an account."""
    user = storage.update_user_status(user_id, body.status)
    logger.info("Admin %s set user %s status to %s", admin.id, user_id, body.status.value)
    return user


@router.patch("/users/{user_id}/role", response_model=UserOut)
async def admin_update_user_role(
    user_id: str,
    body: UserRoleUpdate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    user = storage.update_user_role(user_id, body.role)
    logger.info("Admin %s set user %s role to %s", admin.id, user_id, body.role.value)
    return user


# ---- Memberships ----
@router.get("/memberships", response_model=List[MembershipDetailOut])
async def admin_list_memberships(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return storage.list_memberships()


@router.patch("/memberships/{membership_id}", response_model=MembershipOut)
async def admin_update_membership(
    membership_id: str,
    body: MembershipStatusUpdate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return storage.update_membership_status(membership_id, body.status)


# ---- Organisation views ----
@router.get("/metrics", response_model=AdminMetrics)
async def admin_metrics(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return stats_service.admin_metrics(
        storage.count_users_by_status(),
        total_teams=storage.count_teams(),
        total_projects=storage.count_projects(),
        completed_projects=storage.count_projects(ProjectStatus.completed),
        total_tasks=storage.count_tasks(),
        completed_tasks=storage.count_tasks(TaskStatus.COMPLETED),
    )


@router.get("/projects", response_model=List[ProjectOut])
async def admin_list_projects(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return storage.list_all_projects()


@router.get("/recent-updates", response_model=List[RecentUpdateOut])
async def admin_recent_updates(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return storage.list_recent_updates()
