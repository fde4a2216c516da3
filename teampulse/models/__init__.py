"""Models package: import all models so metadata.create_all sees every table."""

from teampulse.models.user import User, UserRole, UserStatus
from teampulse.models.team import Team, TeamMembership, MembershipRole, MembershipStatus
from teampulse.models.project import (
    Project, ProjectUpdate, ProjectStatus, ProjectPriority, ProjectUpdateStatus
)
from teampulse.models.task import Task, UserUpdate, TaskStatus, TaskPriority
from teampulse.models.progress import DailyUpdate, Goal, Activity, GoalType, ActivityType
from teampulse.models.session import HttpSession

__all__ = [
    "User", "UserRole", "UserStatus",
    "Team", "TeamMembership", "MembershipRole", "MembershipStatus",
    "Project", "ProjectUpdate", "ProjectStatus", "ProjectPriority", "ProjectUpdateStatus",
    "Task", "UserUpdate", "TaskStatus", "TaskPriority",
    "DailyUpdate", "Goal", "Activity", "GoalType", "ActivityType",
    "HttpSession",
]
