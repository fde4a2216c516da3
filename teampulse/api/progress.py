"""Personal progress router: daily updates, goals, activities, analytics, export."""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from teampulse.core.deps import get_storage
from teampulse.core.exceptions import ResourceNotFoundError
from teampulse.core.security import require_approved
from teampulse.models.user import User
from teampulse.schemas.schemas import (
    ActivityOut, DailyUpdateCreate, DailyUpdateOut, DashboardMetrics, ExportData,
    ExportSnapshot, ExportSummary, GoalCreate, GoalOut, GoalPatch, MonthlyStats,
    ProjectOut, WeeklyStat,
)
from teampulse.services import stats_service
from teampulse.services.activity_service import activity_service
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.progress")

router = APIRouter(tags=["progress"])


# ---- Daily updates ----
@router.get("/daily-updates", response_model=List[DailyUpdateOut])
async def list_daily_updates(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_daily_updates(user.id)


@router.get("/daily-updates/{date}", response_model=DailyUpdateOut)
async def get_daily_update(
    date: str,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    update = storage.get_daily_update(user.id, date)
    if update is None:
        raise ResourceNotFoundError("Daily update not found")
    return update


@router.post("/daily-updates", response_model=DailyUpdateOut, status_code=status.HTTP_201_CREATED)
async def upsert_daily_update(
    body: DailyUpdateCreate,
    response: Response,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Create the day's update, or overwrite it (200) when one exists for that date."""
    fields = body.model_dump(exclude={"date"})
    if storage.get_daily_update(user.id, body.date) is not None:
        update = storage.update_daily_update(user.id, body.date, **fields)
        response.status_code = status.HTTP_200_OK
    else:
        update = storage.create_daily_update(user.id, date=body.date, **fields)
    activity_service.record_daily_update(storage, update)
    return update


# ---- Goals ----
@router.get("/goals", response_model=List[GoalOut])
async def list_goals(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_goals(user.id)


@router.post("/goals", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
async def create_goal(
    body: GoalCreate,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    goal = storage.create_goal(user.id, **body.model_dump())
    activity_service.record_goal_added(storage, goal)
    return goal


@router.patch("/goals/{goal_id}", response_model=GoalOut)
async def update_goal(
    goal_id: str,
    body: GoalPatch,
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    before = storage.get_goal(goal_id)
    if before is None or before.user_id != user.id:
        raise ResourceNotFoundError("Goal not found")
    was_current, was_target = before.current, before.target
    goal = storage.update_goal(goal_id, **body.model_dump(exclude_unset=True, exclude_none=True))
    activity_service.record_goal_progress(storage, was_current, was_target, goal)
    return goal


# ---- Activities ----
@router.get("/activities", response_model=List[ActivityOut])
async def list_activities(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return storage.list_activities(user.id, limit)


# ---- Analytics ----
@router.get("/analytics/weekly", response_model=List[WeeklyStat])
async def weekly_stats(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return stats_service.weekly_stats(storage.list_daily_updates(user.id))


@router.get("/analytics/monthly", response_model=MonthlyStats)
async def monthly_stats(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return stats_service.monthly_stats(storage.list_daily_updates(user.id))


@router.get("/dashboard/metrics", response_model=DashboardMetrics)
async def dashboard_metrics(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    return stats_service.dashboard_metrics(
        storage.list_tasks(user.id),
        storage.list_goals(user.id),
        storage.list_daily_updates(user.id),
    )


# ---- Export ----
@router.get("/export", response_model=ExportSnapshot)
async def export_data(
    user: User = Depends(require_approved),
    storage: Storage = Depends(get_storage),
):
    """Everything the user has recorded, as a downloadable JSON file."""
    updates = [DailyUpdateOut.model_validate(u) for u in storage.list_daily_updates(user.id)]
    goals = [GoalOut.model_validate(g) for g in storage.list_goals(user.id)]
    activities = [ActivityOut.model_validate(a) for a in storage.list_activities(user.id, 100)]
    projects = [ProjectOut.model_validate(p) for p in storage.list_projects(user.id)]

    generated_at = datetime.now(timezone.utc)
    snapshot = ExportSnapshot(
        generated_at=generated_at,
        user_id=user.id,
        summary=ExportSummary(
            total_updates=len(updates),
            total_goals=len(goals),
            total_activities=len(activities),
            total_projects=len(projects),
        ),
        data=ExportData(
            daily_updates=updates, goals=goals, activities=activities, projects=projects,
        ),
    )
    filename = f"productivity-data-{generated_at.date().isoformat()}.json"
    return JSONResponse(
        content=snapshot.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
