"""In-memory storage backend.

Mirrors the relational schema with plain dicts keyed by generated UUIDs.
Used for local development and tests only: the dicts are mutated without any
locking, so it is not safe for concurrent use.
"""

from typing import Optional, List, Dict, Any

from teampulse.core.exceptions import ResourceConflictError, ResourceNotFoundError
from teampulse.db.base import utcnow
from teampulse.models.user import User, UserRole, UserStatus
from teampulse.models.team import Team, TeamMembership, MembershipStatus
from teampulse.models.project import Project, ProjectUpdate, ProjectStatus
from teampulse.models.task import Task, UserUpdate, TaskStatus
from teampulse.models.progress import DailyUpdate, Goal, Activity
from teampulse.storage.base import Storage


def _with_defaults(obj):
    """Fill unset columns from their declared defaults (normally done on INSERT)."""
    for column in obj.__table__.columns:
        if column.default is None or getattr(obj, column.key) is not None:
            continue
        default = column.default
        value = default.arg(None) if default.is_callable else default.arg
        setattr(obj, column.key, value)
    return obj


def _newest_first(rows, attr: str):
    return sorted(rows, key=lambda row: getattr(row, attr), reverse=True)


class MemStorage(Storage):
    """Dict-backed storage for development and tests."""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._teams: Dict[str, Team] = {}
        self._memberships: Dict[str, TeamMembership] = {}
        self._projects: Dict[str, Project] = {}
        self._project_updates: Dict[str, ProjectUpdate] = {}
        self._tasks: Dict[str, Task] = {}
        self._user_updates: Dict[str, UserUpdate] = {}
        self._daily_updates: Dict[str, DailyUpdate] = {}
        self._goals: Dict[str, Goal] = {}
        self._activities: Dict[str, Activity] = {}

    @staticmethod
    def _put(table: Dict[str, Any], obj):
        _with_defaults(obj)
        table[obj.id] = obj
        return obj

    @staticmethod
    def _patch(table: Dict[str, Any], key: str, label: str, touch: bool = False, **fields: Any):
        obj = table.get(key)
        if obj is None:
            raise ResourceNotFoundError(f"{label} not found")
        for name, value in fields.items():
            setattr(obj, name, value)
        if touch:
            obj.updated_at = utcnow()
        return obj

    def _check_email_free(self, email: Optional[str], user_id: Optional[str] = None) -> None:
        if email is None:
            return
        for user in self._users.values():
            if user.email == email and user.id != user_id:
                raise ResourceConflictError("Conflicting record already exists")

    # ---- Users ----
    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email), None)

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
    ) -> User:
        self._check_email_free(email)
        if user_id and user_id in self._users:
            raise ResourceConflictError("Conflicting record already exists")
        user = User(
            id=user_id,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=profile_image_url,
            role=role,
            status=status,
        )
        return self._put(self._users, user)

    def upsert_user(
        self,
        user_id: str,
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        profile_image_url: Optional[str],
    ) -> User:
        self._check_email_free(email, user_id)
        user = self._users.get(user_id)
        if user is None:
            return self.create_user(
                email, None, first_name, last_name,
                user_id=user_id, profile_image_url=profile_image_url,
            )
        return self._patch(
            self._users, user_id, "User", touch=True,
            email=email, first_name=first_name, last_name=last_name,
            profile_image_url=profile_image_url,
        )

    def update_user(self, user_id: str, **fields: Any) -> User:
        return self._patch(self._users, user_id, "User", touch=True, **fields)

    def list_users(self) -> List[User]:
        return _newest_first(self._users.values(), "created_at")

    # ---- Daily updates ----
    def get_daily_update(self, user_id: str, date: str) -> Optional[DailyUpdate]:
        return next(
            (u for u in self._daily_updates.values() if u.user_id == user_id and u.date == date),
            None,
        )

    def list_daily_updates(self, user_id: str) -> List[DailyUpdate]:
        rows = [u for u in self._daily_updates.values() if u.user_id == user_id]
        return _newest_first(rows, "date")

    def create_daily_update(self, user_id: str, **fields: Any) -> DailyUpdate:
        if self.get_daily_update(user_id, fields.get("date")) is not None:
            raise ResourceConflictError("Conflicting record already exists")
        return self._put(self._daily_updates, DailyUpdate(user_id=user_id, **fields))

    def update_daily_update(self, user_id: str, date: str, **fields: Any) -> DailyUpdate:
        update = self.get_daily_update(user_id, date)
        if update is None:
            raise ResourceNotFoundError("Daily update not found")
        return self._patch(self._daily_updates, update.id, "Daily update", **fields)

    # ---- Goals ----
    def list_goals(self, user_id: str) -> List[Goal]:
        rows = [g for g in self._goals.values() if g.user_id == user_id and g.is_active]
        return _newest_first(rows, "created_at")

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return self._goals.get(goal_id)

    def create_goal(self, user_id: str, **fields: Any) -> Goal:
        return self._put(self._goals, Goal(user_id=user_id, **fields))

    def update_goal(self, goal_id: str, **fields: Any) -> Goal:
        return self._patch(self._goals, goal_id, "Goal", **fields)

    # ---- Activities ----
    def list_activities(self, user_id: str, limit: int = 10) -> List[Activity]:
        rows = [a for a in self._activities.values() if a.user_id == user_id]
        return _newest_first(rows, "timestamp")[:limit]

    def create_activity(self, user_id: str, **fields: Any) -> Activity:
        return self._put(self._activities, Activity(user_id=user_id, **fields))

    # ---- Projects ----
    def list_projects(self, user_id: str) -> List[Project]:
        rows = [p for p in self._projects.values() if p.user_id == user_id]
        return _newest_first(rows, "created_at")

    def list_all_projects(self) -> List[Project]:
        return _newest_first(self._projects.values(), "created_at")

    def list_team_projects(self, team_id: str) -> List[Project]:
        return [p for p in self._projects.values() if p.team_id == team_id]

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def create_project(self, user_id: str, **fields: Any) -> Project:
        return self._put(self._projects, Project(user_id=user_id, **fields))

    def update_project(self, project_id: str, **fields: Any) -> Project:
        return self._patch(self._projects, project_id, "Project", touch=True, **fields)

    def list_project_updates(self, project_id: str) -> List[ProjectUpdate]:
        rows = [u for u in self._project_updates.values() if u.project_id == project_id]
        return _newest_first(rows, "created_at")

    def create_project_update(self, user_id: str, project_id: str, **fields: Any) -> ProjectUpdate:
        update = ProjectUpdate(user_id=user_id, project_id=project_id, **fields)
        return self._put(self._project_updates, update)

    # ---- Teams & memberships ----
    def list_teams(self) -> List[Team]:
        return _newest_first(self._teams.values(), "created_at")

    def get_team(self, team_id: str) -> Optional[Team]:
        return self._teams.get(team_id)

    def create_team(self, user_id: str, **fields: Any) -> Team:
        return self._put(self._teams, Team(created_by=user_id, **fields))

    def _joined_membership(self, membership: TeamMembership) -> TeamMembership:
        membership.team = self._teams.get(membership.team_id)
        membership.user = self._users.get(membership.user_id)
        return membership

    def list_memberships(self) -> List[TeamMembership]:
        rows = _newest_first(self._memberships.values(), "joined_at")
        return [self._joined_membership(m) for m in rows]

    def list_user_teams(self, user_id: str) -> List[TeamMembership]:
        return [
            self._joined_membership(m)
            for m in self._memberships.values()
            if m.user_id == user_id
        ]

    def list_team_members(self, team_id: str) -> List[TeamMembership]:
        return [
            self._joined_membership(m)
            for m in self._memberships.values()
            if m.team_id == team_id
        ]

    def create_membership(self, user_id: str, team_id: str) -> TeamMembership:
        membership = TeamMembership(
            user_id=user_id, team_id=team_id, status=MembershipStatus.PENDING
        )
        return self._put(self._memberships, membership)

    def update_membership_status(
        self, membership_id: str, status: MembershipStatus
    ) -> TeamMembership:
        return self._patch(self._memberships, membership_id, "Membership", status=status)

    # ---- Tasks ----
    def list_tasks(self, user_id: str) -> List[Task]:
        rows = [t for t in self._tasks.values() if t.user_id == user_id]
        return _newest_first(rows, "created_at")

    def list_user_tasks(self, user_id: str) -> List[Task]:
        rows = [t for t in self._tasks.values() if t.user_id == user_id]
        for task in rows:
            task.project = self._projects.get(task.project_id) if task.project_id else None
        return rows

    def list_recent_tasks(self, user_id: str, limit: int = 5) -> List[Task]:
        return _newest_first(self.list_user_tasks(user_id), "updated_at")[:limit]

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def create_task(self, user_id: str, **fields: Any) -> Task:
        return self._put(self._tasks, Task(user_id=user_id, **fields))

    def update_task(self, task_id: str, **fields: Any) -> Task:
        return self._patch(self._tasks, task_id, "Task", touch=True, **fields)

    # ---- User updates ----
    def _joined_update(self, update: UserUpdate) -> UserUpdate:
        update.user = self._users.get(update.user_id)
        update.team = self._teams.get(update.team_id) if update.team_id else None
        update.project = self._projects.get(update.project_id) if update.project_id else None
        return update

    def list_user_updates(self, user_id: str) -> List[UserUpdate]:
        rows = [u for u in self._user_updates.values() if u.user_id == user_id]
        return _newest_first(rows, "created_at")

    def list_team_updates(self, team_id: str) -> List[UserUpdate]:
        rows = [u for u in self._user_updates.values() if u.team_id == team_id]
        return [self._joined_update(u) for u in _newest_first(rows, "created_at")]

    def list_recent_updates(self, limit: int = 10) -> List[UserUpdate]:
        rows = _newest_first(self._user_updates.values(), "created_at")[:limit]
        return [self._joined_update(u) for u in rows]

    def create_user_update(self, user_id: str, **fields: Any) -> UserUpdate:
        return self._put(self._user_updates, UserUpdate(user_id=user_id, **fields))

    def update_user_update(self, update_id: str, **fields: Any) -> UserUpdate:
        return self._patch(self._user_updates, update_id, "Update", touch=True, **fields)

    # ---- Counters ----
    def count_users_by_status(self) -> Dict[UserStatus, int]:
        counts = {status: 0 for status in UserStatus}
        for user in self._users.values():
            counts[UserStatus(user.status)] += 1
        return counts

    def count_teams(self) -> int:
        return len(self._teams)

    def count_projects(self, status: Optional[ProjectStatus] = None) -> int:
        return sum(1 for p in self._projects.values() if status is None or p.status == status)

    def count_tasks(self, status: Optional[TaskStatus] = None) -> int:
        return sum(1 for t in self._tasks.values() if status is None or t.status == status)
