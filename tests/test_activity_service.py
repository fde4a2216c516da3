"""Tests for activity feed side effects."""

from teampulse.models.progress import ActivityType, GoalType
from teampulse.services.activity_service import activity_service, format_minutes


def test_format_minutes():
    assert format_minutes(90) == "1h 30m"
    assert format_minutes(120) == "2h"
    assert format_minutes(45) == "45m"


def test_daily_update_with_tasks_and_time(storage):
    update = storage.create_daily_update(
        "u1", date="2024-01-01", tasks_completed=3, hours_worked=150
    )
    recorded = activity_service.record_daily_update(storage, update)

    assert [a.type for a in recorded] == [ActivityType.task_completed, ActivityType.time_updated]
    assert recorded[0].description == "Completed 3 tasks on 2024-01-01"
    assert recorded[1].description == "Logged 2h 30m on 2024-01-01"
    assert len(storage.list_activities("u1")) == 2


def test_empty_daily_update_records_nothing(storage):
    update = storage.create_daily_update("u1", date="2024-01-01")
    assert activity_service.record_daily_update(storage, update) == []


def test_goal_added(storage):
    goal = storage.create_goal("u1", title="Read 5 books", target=5, type=GoalType.reading)
    activity = activity_service.record_goal_added(storage, goal)
    assert activity.type == ActivityType.goal_added
    assert "Read 5 books" in activity.description


def test_goal_reached_only_when_crossing_target(storage):
    goal = storage.create_goal("u1", title="Ship it", target=3, type=GoalType.tasks)

    goal = storage.update_goal(goal.id, current=2)
    assert activity_service.record_goal_progress(storage, 0, 3, goal) is None

    goal = storage.update_goal(goal.id, current=3)
    reached = activity_service.record_goal_progress(storage, 2, 3, goal)
    assert reached.type == ActivityType.goal_reached

    goal = storage.update_goal(goal.id, current=4)
    assert activity_service.record_goal_progress(storage, 3, 3, goal) is None


def test_lowering_target_below_current_reaches_goal(storage):
    goal = storage.create_goal("u1", title="Read", target=10, type=GoalType.reading)
    goal = storage.update_goal(goal.id, current=6)
    assert activity_service.record_goal_progress(storage, 0, 10, goal) is None

    goal = storage.update_goal(goal.id, target=5)
    reached = activity_service.record_goal_progress(storage, 6, 10, goal)
    assert reached.type == ActivityType.goal_reached
