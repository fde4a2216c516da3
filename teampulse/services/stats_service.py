"""Analytics computed in-process over a user's rows.

Daily updates are keyed by ISO date strings and compared as strings.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from teampulse.models.user import UserStatus
from teampulse.models.project import Project, ProjectStatus
from teampulse.models.task import Task, TaskStatus, UserUpdate
from teampulse.models.progress import DailyUpdate, Goal
from teampulse.schemas.schemas import (
    AdminMetrics, DashboardMetrics, MonthlyStats, TeamMetrics, UserMetricsOut, WeeklyStat,
)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _round(value: float) -> int:
    """Round half up, as percentages are shown to users."""
    return int(math.floor(value + 0.5))


def _percent(part: int, whole: int) -> int:
    return _round(part / whole * 100) if whole else 0


def _day_of(moment: Optional[datetime]) -> Optional[date]:
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def _by_date(updates: Iterable[DailyUpdate]) -> Dict[str, DailyUpdate]:
    return {u.date: u for u in updates}


def weekly_stats(updates: Iterable[DailyUpdate], today: Optional[date] = None) -> List[WeeklyStat]:
    """Seven entries, oldest first, one per calendar day ending today."""
    today = today or today_utc()
    by_date = _by_date(updates)
    stats = []
    for offset in range(6, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        update = by_date.get(day)
        stats.append(WeeklyStat(
            date=day,
            tasks=update.tasks_completed if update else 0,
            hours=update.hours_worked if update else 0,
        ))
    return stats


def current_streak(updates: Iterable[DailyUpdate], today: Optional[date] = None) -> int:
    """Consecutive days, counting back from today, with at least one task done.

    Stops at the first day without an update or with zero tasks.
    """
    day = today or today_utc()
    by_date = _by_date(updates)
    streak = 0
    while True:
        update = by_date.get(day.isoformat())
        if update is None or update.tasks_completed <= 0:
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


def monthly_stats(updates: Sequence[DailyUpdate], today: Optional[date] = None) -> MonthlyStats:
    today = today or today_utc()
    month_start = today.replace(day=1).isoformat()
    in_month = [u for u in updates if u.date >= month_start]
    return MonthlyStats(
        tasks=sum(u.tasks_completed for u in in_month),
        hours=sum(u.hours_worked for u in in_month),
        streak=current_streak(updates, today),
    )


class TaskMetrics:
    """Task counters for one user."""

    def __init__(self, tasks: Sequence[Task], today: Optional[date] = None):
        today = today or today_utc()
        self.total_tasks = len(tasks)
        self.completed_tasks = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
        self.in_progress_tasks = sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS)
        self.blocked_tasks = sum(1 for t in tasks if t.status == TaskStatus.BLOCKED)
        self.total_hours = sum(t.actual_hours or 0 for t in tasks)
        self.today_hours = sum(
            t.actual_hours or 0 for t in tasks if _day_of(t.updated_at) == today
        )
        self.completion_rate = _percent(self.completed_tasks, self.total_tasks)
        self.average_task_time = (
            _round(self.total_hours / self.completed_tasks) if self.completed_tasks else 0
        )


def _completed_on(tasks: Iterable[Task], day: date) -> int:
    return sum(
        1 for t in tasks
        if t.status == TaskStatus.COMPLETED and _day_of(t.updated_at) == day
    )


def goal_progress(goals: Sequence[Goal]) -> int:
    """Mean completion of the given goals, as a percentage."""
    if not goals:
        return 0
    return _round(sum(g.current / g.target for g in goals) / len(goals) * 100)


def dashboard_metrics(
    tasks: Sequence[Task],
    goals: Sequence[Goal],
    updates: Sequence[DailyUpdate],
    today: Optional[date] = None,
) -> DashboardMetrics:
    today = today or today_utc()
    metrics = TaskMetrics(tasks, today)

    completed_today = _completed_on(tasks, today)
    change = completed_today - _completed_on(tasks, today - timedelta(days=1))
    if change > 0:
        tasks_change = f"+{change} from yesterday"
    elif change < 0:
        tasks_change = f"{change} from yesterday"
    else:
        tasks_change = "Same as yesterday"

    progress = goal_progress(goals)
    hours = metrics.today_hours
    score = min(100, _round(metrics.completion_rate * 0.6 + min(hours, 8) * 5 + progress * 0.4))

    if hours >= 8:
        time_status = "On track"
    elif hours >= 6:
        time_status = "Good pace"
    else:
        time_status = "Behind target"

    if score > 80:
        productivity_change = "+5 points"
    elif score > 60:
        productivity_change = "+2 points"
    else:
        productivity_change = "-1 point"

    return DashboardMetrics(
        tasks_completed=completed_today,
        tasks_change=tasks_change,
        goal_progress=progress,
        time_spent=f"{math.floor(hours)}h {_round((hours % 1) * 60)}m",
        time_spent_status=time_status,
        productivity_score=score,
        productivity_change=productivity_change,
        current_streak=current_streak(updates, today),
    )


def project_completion(projects: Sequence[Project]) -> int:
    completed = sum(1 for p in projects if p.status == ProjectStatus.completed)
    return _percent(completed, len(projects))


def user_metrics(
    tasks: Sequence[Task], projects: Sequence[Project], today: Optional[date] = None
) -> UserMetricsOut:
    metrics = TaskMetrics(tasks, today)
    return UserMetricsOut(
        total_tasks=metrics.total_tasks,
        completed_tasks=metrics.completed_tasks,
        in_progress_tasks=metrics.in_progress_tasks,
        blocked_tasks=metrics.blocked_tasks,
        total_projects=len(projects),
        completed_projects=sum(1 for p in projects if p.status == ProjectStatus.completed),
        task_completion_rate=metrics.completion_rate,
        project_completion_rate=project_completion(projects),
    )


def team_metrics(
    projects: Sequence[Project],
    member_count: int,
    updates: Sequence[UserUpdate] = (),
) -> TeamMetrics:
    completed = sum(1 for p in projects if p.status == ProjectStatus.completed)
    return TeamMetrics(
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.status == ProjectStatus.active),
        completed_projects=completed,
        total_members=member_count,
        total_hours=sum(u.work_hours or 0 for u in updates),
        completion_rate=(completed * 100 / len(projects)) if projects else 0,
    )


def admin_metrics(
    users_by_status: Dict[UserStatus, int],
    total_teams: int,
    total_projects: int,
    completed_projects: int,
    total_tasks: int,
    completed_tasks: int,
) -> AdminMetrics:
    return AdminMetrics(
        total_users=sum(users_by_status.values()),
        total_teams=total_teams,
        total_projects=total_projects,
        active_users=users_by_status.get(UserStatus.APPROVED, 0),
        pending_users=users_by_status.get(UserStatus.PENDING, 0),
        completed_tasks=completed_tasks,
        task_completion_rate=_percent(completed_tasks, total_tasks),
        project_completion_rate=_percent(completed_projects, total_projects),
    )
