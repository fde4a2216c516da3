"""Persistence interface shared by the SQL and in-memory backends."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any

from teampulse.models.user import User, UserRole, UserStatus
from teampulse.models.team import Team, TeamMembership, MembershipStatus
from teampulse.models.project import Project, ProjectUpdate, ProjectStatus
from teampulse.models.task import Task, UserUpdate, TaskStatus
from teampulse.models.progress import DailyUpdate, Goal, Activity


class Storage(ABC):
    """Data-access façade.

    Every method is a single read or write; there are no cross-entity
    transactions. Partial updates of a missing row raise
    ``ResourceNotFoundError``. Joined reads (``list_memberships``,
    ``list_user_tasks``, ...) return model instances whose relationship
    attributes (``team``, ``user``, ``project``) are populated.
    """

    # ---- Users ----
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(
        self,
        email: Optional[str],
        password_hash: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.PENDING,
        user_id: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> User: ...

    @abstractmethod
    def upsert_user(
        self,
        user_id: str,
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        profile_image_url: Optional[str],
    ) -> User:
        """Create the user keyed by ``user_id`` or refresh its profile fields."""

    @abstractmethod
    def update_user(self, user_id: str, **fields: Any) -> User: ...

    def update_user_status(self, user_id: str, status: UserStatus) -> User:
        return self.update_user(user_id, status=status)

    def update_user_role(self, user_id: str, role: UserRole) -> User:
        return self.update_user(user_id, role=role)

    @abstractmethod
    def list_users(self) -> List[User]: ...

    # ---- Daily updates ----
    @abstractmethod
    def get_daily_update(self, user_id: str, date: str) -> Optional[DailyUpdate]: ...

    @abstractmethod
    def list_daily_updates(self, user_id: str) -> List[DailyUpdate]:
        """All of a user's daily updates, newest date first."""

    @abstractmethod
    def create_daily_update(self, user_id: str, **fields: Any) -> DailyUpdate: ...

    @abstractmethod
    def update_daily_update(self, user_id: str, date: str, **fields: Any) -> DailyUpdate: ...

    # ---- Goals ----
    @abstractmethod
    def list_goals(self, user_id: str) -> List[Goal]:
        """Active goals, newest first."""

    @abstractmethod
    def get_goal(self, goal_id: str) -> Optional[Goal]: ...

    @abstractmethod
    def create_goal(self, user_id: str, **fields: Any) -> Goal: ...

    @abstractmethod
    def update_goal(self, goal_id: str, **fields: Any) -> Goal: ...

    # ---- Activities ----
    @abstractmethod
    def list_activities(self, user_id: str, limit: int = 10) -> List[Activity]: ...

    @abstractmethod
    def create_activity(self, user_id: str, **fields: Any) -> Activity: ...

    # ---- Projects ----
    @abstractmethod
    def list_projects(self, user_id: str) -> List[Project]: ...

    @abstractmethod
    def list_all_projects(self) -> List[Project]: ...

    @abstractmethod
    def list_team_projects(self, team_id: str) -> List[Project]: ...

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]: ...

    @abstractmethod
    def create_project(self, user_id: str, **fields: Any) -> Project: ...

    @abstractmethod
    def update_project(self, project_id: str, **fields: Any) -> Project:
        """Apply ``fields`` and bump ``updated_at``."""

    @abstractmethod
    def list_project_updates(self, project_id: str) -> List[ProjectUpdate]: ...

    @abstractmethod
    def create_project_update(self, user_id: str, project_id: str, **fields: Any) -> ProjectUpdate: ...

    # ---- Teams & memberships ----
    @abstractmethod
    def list_teams(self) -> List[Team]: ...

    @abstractmethod
    def get_team(self, team_id: str) -> Optional[Team]: ...

    @abstractmethod
    def create_team(self, user_id: str, **fields: Any) -> Team: ...

    @abstractmethod
    def list_memberships(self) -> List[TeamMembership]:
        """All memberships with ``team`` and ``user`` populated."""

    @abstractmethod
    def list_user_teams(self, user_id: str) -> List[TeamMembership]: ...

    @abstractmethod
    def list_team_members(self, team_id: str) -> List[TeamMembership]: ...

    @abstractmethod
    def create_membership(self, user_id: str, team_id: str) -> TeamMembership: ...

    @abstractmethod
    def update_membership_status(
        self, membership_id: str, status: MembershipStatus
    ) -> TeamMembership: ...

    # ---- Tasks ----
    @abstractmethod
    def list_tasks(self, user_id: str) -> List[Task]: ...

    @abstractmethod
    def list_user_tasks(self, user_id: str) -> List[Task]:
        """A user's tasks with ``project`` populated."""

    @abstractmethod
    def list_recent_tasks(self, user_id: str, limit: int = 5) -> List[Task]: ...

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    def create_task(self, user_id: str, **fields: Any) -> Task: ...

    @abstractmethod
    def update_task(self, task_id: str, **fields: Any) -> Task:
        """Apply ``fields`` and bump ``updated_at``."""

    # ---- User updates ----
    @abstractmethod
    def list_user_updates(self, user_id: str) -> List[UserUpdate]: ...

    @abstractmethod
    def list_team_updates(self, team_id: str) -> List[UserUpdate]: ...

    @abstractmethod
    def list_recent_updates(self, limit: int = 10) -> List[UserUpdate]: ...

    @abstractmethod
    def create_user_update(self, user_id: str, **fields: Any) -> UserUpdate: ...

    @abstractmethod
    def update_user_update(self, update_id: str, **fields: Any) -> UserUpdate: ...

    # ---- Counters (admin metrics) ----
    @abstractmethod
    def count_users_by_status(self) -> Dict[UserStatus, int]: ...

    @abstractmethod
    def count_teams(self) -> int: ...

    @abstractmethod
    def count_projects(self, status: Optional[ProjectStatus] = None) -> int: ...

    @abstractmethod
    def count_tasks(self, status: Optional[TaskStatus] = None) -> int: ...

    def count_users(self) -> int:
        return sum(self.count_users_by_status().values())

    def ping(self) -> bool:
        """Backend reachability check used by the health endpoint."""
        return True
