"""Tests for the in-process analytics."""

from datetime import date, datetime, timedelta, timezone

from teampulse.models.progress import DailyUpdate, Goal, GoalType
from teampulse.models.project import Project, ProjectStatus
from teampulse.models.task import Task, TaskStatus, UserUpdate
from teampulse.models.user import UserStatus
from teampulse.services import stats_service

TODAY = date(2024, 3, 15)


def _update(days_ago, tasks=1, minutes=60):
    return DailyUpdate(
        user_id="u1",
        date=(TODAY - timedelta(days=days_ago)).isoformat(),
        tasks_completed=tasks,
        hours_worked=minutes,
    )


def _task(status=TaskStatus.TODO, days_ago=0, actual_hours=None):
    moment = datetime(TODAY.year, TODAY.month, TODAY.day, 12, tzinfo=timezone.utc)
    return Task(
        user_id="u1", title="t", status=status, actual_hours=actual_hours,
        updated_at=moment - timedelta(days=days_ago),
    )


# ---- Streak ----
def test_streak_counts_consecutive_days_back_from_today():
    updates = [_update(0), _update(1), _update(2), _update(4)]
    assert stats_service.current_streak(updates, TODAY) == 3


def test_zero_task_day_breaks_streak():
    updates = [_update(0), _update(1, tasks=0), _update(2)]
    assert stats_service.current_streak(updates, TODAY) == 1


def test_no_update_today_means_no_streak():
    assert stats_service.current_streak([_update(1), _update(2)], TODAY) == 0
    assert stats_service.current_streak([], TODAY) == 0


# ---- Weekly / monthly ----
def test_weekly_stats_has_seven_days_oldest_first():
    stats = stats_service.weekly_stats([_update(0, tasks=4, minutes=120), _update(3, tasks=2)], TODAY)

    assert len(stats) == 7
    assert [s.date for s in stats] == [
        (TODAY - timedelta(days=n)).isoformat() for n in range(6, -1, -1)
    ]
    assert (stats[-1].tasks, stats[-1].hours) == (4, 120)
    assert stats[3].tasks == 2
    assert (stats[0].tasks, stats[0].hours) == (0, 0)


def test_weekly_stats_ignores_older_rows():
    stats = stats_service.weekly_stats([_update(7, tasks=9)], TODAY)
    assert sum(s.tasks for s in stats) == 0


def test_monthly_stats_sums_current_month_only():
    updates = [_update(0, tasks=2, minutes=30), _update(14, tasks=3, minutes=45), _update(15, tasks=7)]
    stats = stats_service.monthly_stats(updates, TODAY)

    # TODAY - 15 days is the last day of February
    assert stats.tasks == 5
    assert stats.hours == 75
    assert stats.streak == 1


# ---- Task and dashboard metrics ----
def test_task_metrics():
    tasks = [
        _task(TaskStatus.COMPLETED, actual_hours=3),
        _task(TaskStatus.COMPLETED, days_ago=2, actual_hours=2),
        _task(TaskStatus.IN_PROGRESS, actual_hours=1),
        _task(TaskStatus.BLOCKED),
    ]
    metrics = stats_service.TaskMetrics(tasks, TODAY)

    assert metrics.total_tasks == 4
    assert metrics.completed_tasks == 2
    assert metrics.in_progress_tasks == 1
    assert metrics.blocked_tasks == 1
    assert metrics.total_hours == 6
    assert metrics.today_hours == 4
    assert metrics.completion_rate == 50
    assert metrics.average_task_time == 3


def test_task_metrics_empty():
    metrics = stats_service.TaskMetrics([], TODAY)
    assert metrics.completion_rate == 0
    assert metrics.average_task_time == 0


def test_dashboard_metrics():
    tasks = [
        _task(TaskStatus.COMPLETED, actual_hours=8),
        _task(TaskStatus.COMPLETED, actual_hours=1),
        _task(TaskStatus.COMPLETED, days_ago=1),
        _task(TaskStatus.TODO),
    ]
    goals = [
        Goal(user_id="u1", title="a", target=10, current=5, type=GoalType.tasks),
        Goal(user_id="u1", title="b", target=4, current=4, type=GoalType.hours),
    ]
    metrics = stats_service.dashboard_metrics(tasks, goals, [_update(0), _update(1)], TODAY)

    assert metrics.tasks_completed == 2
    assert metrics.tasks_change == "+1 from yesterday"
    assert metrics.goal_progress == 75
    assert metrics.time_spent == "9h 0m"
    assert metrics.time_spent_status == "On track"
    # 75% completion * 0.6 + 8h * 5 + 75 * 0.4 = 45 + 40 + 30
    assert metrics.productivity_score == 100
    assert metrics.productivity_change == "+5 points"
    assert metrics.current_streak == 2


def test_dashboard_metrics_quiet_day():
    metrics = stats_service.dashboard_metrics(
        [_task(TaskStatus.COMPLETED, days_ago=1)], [], [], TODAY
    )
    assert metrics.tasks_change == "-1 from yesterday"
    assert metrics.time_spent_status == "Behind target"
    assert metrics.productivity_score == 60
    assert metrics.productivity_change == "-1 point"
    assert metrics.current_streak == 0


def test_dashboard_metrics_same_as_yesterday():
    metrics = stats_service.dashboard_metrics([], [], [], TODAY)
    assert metrics.tasks_change == "Same as yesterday"
    assert metrics.productivity_score == 0


# ---- Team / admin ----
def test_team_metrics():
    projects = [
        Project(user_id="u1", title="a", status=ProjectStatus.active),
        Project(user_id="u1", title="b", status=ProjectStatus.completed),
        Project(user_id="u1", title="c", status=ProjectStatus.archived),
    ]
    updates = [UserUpdate(user_id="u1", title="x", description="y", work_hours=5)]
    metrics = stats_service.team_metrics(projects, 4, updates)

    assert metrics.total_projects == 3
    assert metrics.active_projects == 1
    assert metrics.completed_projects == 1
    assert metrics.total_members == 4
    assert metrics.total_hours == 5
    assert round(metrics.completion_rate, 2) == 33.33


def test_team_metrics_without_projects():
    assert stats_service.team_metrics([], 0).completion_rate == 0


def test_admin_metrics():
    metrics = stats_service.admin_metrics(
        {UserStatus.PENDING: 2, UserStatus.APPROVED: 5, UserStatus.REJECTED: 1},
        total_teams=3,
        total_projects=4,
        completed_projects=1,
        total_tasks=8,
        completed_tasks=3,
    )
    assert metrics.total_users == 8
    assert metrics.active_users == 5
    assert metrics.pending_users == 2
    assert metrics.task_completion_rate == 38
    assert metrics.project_completion_rate == 25
