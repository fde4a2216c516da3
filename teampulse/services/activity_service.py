"""Activity feed entries written as a side effect of other writes.

Each entry is an independent write after the main one; a failure between the
two leaves the main row without its activity, which the feed tolerates.
"""

import logging
from typing import List, Optional

from teampulse.models.progress import Activity, ActivityType, DailyUpdate, Goal
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.activity")


def format_minutes(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h {rest}m"
    if hours:
        return f"{hours}h"
    return f"{rest}m"


class ActivityService:
    """Derives activity entries from daily updates and goals."""

    @staticmethod
    def record_daily_update(storage: Storage, update: DailyUpdate) -> List[Activity]:
        recorded = []
        if update.tasks_completed > 0:
            noun = "task" if update.tasks_completed == 1 else "tasks"
            recorded.append(storage.create_activity(
                update.user_id,
                type=ActivityType.task_completed,
                description=f"Completed {update.tasks_completed} {noun} on {update.date}",
            ))
        if update.hours_worked > 0:
            recorded.append(storage.create_activity(
                update.user_id,
                type=ActivityType.time_updated,
                description=f"Logged {format_minutes(update.hours_worked)} on {update.date}",
            ))
        return recorded

    @staticmethod
    def record_goal_added(storage: Storage, goal: Goal) -> Activity:
        return storage.create_activity(
            goal.user_id,
            type=ActivityType.goal_added,
            description=f"Added goal: {goal.title}",
        )

    @staticmethod
    def record_goal_progress(
        storage: Storage, was_current: int, was_target: int, goal: Goal
    ) -> Optional[Activity]:
        """Log ``goal_reached`` when an update takes an unmet goal to its target.

        Either a higher ``current`` or a lowered ``target`` can complete it.

        The previous values are passed in rather than the previous row, since
        the in-memory backend patches rows in place.
        """
        if was_current < was_target and goal.current >= goal.target:
            logger.info("Goal %s reached by user %s", goal.id, goal.user_id)
            return storage.create_activity(
                goal.user_id,
                type=ActivityType.goal_reached,
                description=f"Reached goal: {goal.title}",
            )
        return None


activity_service = ActivityService()
