"""Teams API router: team views and join requests."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from teampulse.core.deps import get_storage
from teampulse.core.exceptions import ResourceNotFoundError
from teampulse.core.security import require_approved
from teampulse.models.user import User
from teampulse.schemas.schemas import (
    JoinTeamRequest, MembershipOut, ProjectOut, TeamMemberOut, TeamMetrics, TeamOut,
    TeamUpdateOut, UserTeamOut,
)
from teampulse.services import stats_service
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.teams")

router = APIRouter(tags=["teams"])


def _ensure_team(storage: Storage, team_id: str) -> None:
    if storage.get_team(team_id) is None:
        raise ResourceNotFoundError("Team not found")


@router.get("/teams", response_model=List[TeamOut])
async def list_teams(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """All teams, so users can pick one to join."""
    return storage.list_teams()


@router.get("/teams/{team_id}/projects", response_model=List[ProjectOut])
async def team_projects(
    team_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _ensure_team(storage, team_id)
    return storage.list_team_projects(team_id)


@router.get("/teams/{team_id}/members", response_model=List[TeamMemberOut])
async def team_members(
    team_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _ensure_team(storage, team_id)
    return storage.list_team_members(team_id)


@router.get("/teams/{team_id}/updates", response_model=List[TeamUpdateOut])
async def team_updates(
    team_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _ensure_team(storage, team_id)
    return storage.list_team_updates(team_id)


@router.get("/teams/{team_id}/metrics", response_model=TeamMetrics)
async def team_metrics(
    team_id: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    _ensure_team(storage, team_id)
    return stats_service.team_metrics(
        storage.list_team_projects(team_id),
        len(storage.list_team_members(team_id)),
        storage.list_team_updates(team_id),
    )


@router.get("/user/teams", response_model=List[UserTeamOut])
async def user_teams(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_user_teams(user.id)


@router.post("/user/join-team", response_model=MembershipOut, status_code=status.HTTP_201_CREATED)
async def join_team(
    body: JoinTeamRequest,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Ask to join a team; an admin activates the membership."""
    _ensure_team(storage, body.team_id)
    membership = storage.create_membership(user.id, body.team_id)
    logger.info("User %s requested to join team %s", user.id, body.team_id)
    return membership
