"""Relational storage backend (SQLAlchemy)."""

import logging
from contextlib import contextmanager
from typing import Optional, List, Dict, Any, Iterator

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from teampulse.core.exceptions import (
    DataIntegrityError, ResourceConflictError, ResourceNotFoundError,
)
from teampulse.db.base import utcnow
from teampulse.models.user import User, UserRole, UserStatus
from teampulse.models.team import Team, TeamMembership, MembershipStatus
from teampulse.models.project import Project, ProjectUpdate, ProjectStatus
from teampulse.models.task import Task, UserUpdate, TaskStatus
from teampulse.models.progress import DailyUpdate, Goal, Activity
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.storage")


class SqlStorage(Storage):
    """Storage backed by a relational database, one ORM session per operation."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            logger.info("Integrity violation: %s", exc.orig)
            raise ResourceConflictError("Conflicting record already exists") from exc
        except LookupError as exc:
            # Enum columns raise a bare LookupError for values outside the enum
            if isinstance(exc, KeyError):
                raise
            logger.error("Unrecognized value loaded from storage: %s", exc)
            raise DataIntegrityError("Stored record holds an unrecognized value") from exc
        finally:
            db.close()

    def _add(self, obj):
        with self._session() as db:
            db.add(obj)
            db.commit()
            return obj

    def _update(self, model, key, label: str, touch: bool = False, **fields: Any):
        with self._session() as db:
            obj = db.get(model, key)
            if obj is None:
                raise ResourceNotFoundError(f"{label} not found")
            for name, value in fields.items():
                setattr(obj, name, value)
            if touch:
                obj.updated_at = utcnow()
            db.commit()
            return obj

    # ---- Users ----
    def get_user(self, user_id: str) -> Optional[User]:
        with self._session() as db:
            return db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._session() as db:
            return db.query(User).filter(User.email == email).first()

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
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=profile_image_url,
            role=role,
            status=status,
        )
        if user_id:
            user.id = user_id
        return self._add(user)

    def upsert_user(
        self,
        user_id: str,
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        profile_image_url: Optional[str],
    ) -> User:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                user = User(
                    id=user_id,
                    role=UserRole.USER,
                    status=UserStatus.PENDING,
                )
                db.add(user)
            user.email = email
            user.first_name = first_name
            user.last_name = last_name
            user.profile_image_url = profile_image_url
            user.updated_at = utcnow()
            db.commit()
            return user

    def update_user(self, user_id: str, **fields: Any) -> User:
        return self._update(User, user_id, "User", touch=True, **fields)

    def list_users(self) -> List[User]:
        with self._session() as db:
            return db.query(User).order_by(User.created_at.desc()).all()

    # ---- Daily updates ----
    def get_daily_update(self, user_id: str, date: str) -> Optional[DailyUpdate]:
        with self._session() as db:
            return (
                db.query(DailyUpdate)
                .filter(DailyUpdate.user_id == user_id, DailyUpdate.date == date)
                .first()
            )

    def list_daily_updates(self, user_id: str) -> List[DailyUpdate]:
        with self._session() as db:
            return (
                db.query(DailyUpdate)
                .filter(DailyUpdate.user_id == user_id)
                .order_by(DailyUpdate.date.desc())
                .all()
            )

    def create_daily_update(self, user_id: str, **fields: Any) -> DailyUpdate:
        return self._add(DailyUpdate(user_id=user_id, **fields))

    def update_daily_update(self, user_id: str, date: str, **fields: Any) -> DailyUpdate:
        with self._session() as db:
            update = (
                db.query(DailyUpdate)
                .filter(DailyUpdate.user_id == user_id, DailyUpdate.date == date)
                .first()
            )
            if update is None:
                raise ResourceNotFoundError("Daily update not found")
            for name, value in fields.items():
                setattr(update, name, value)
            db.commit()
            return update

    # ---- Goals ----
    def list_goals(self, user_id: str) -> List[Goal]:
        with self._session() as db:
            return (
                db.query(Goal)
                .filter(Goal.user_id == user_id, Goal.is_active.is_(True))
                .order_by(Goal.created_at.desc())
                .all()
            )

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        with self._session() as db:
            return db.get(Goal, goal_id)

    def create_goal(self, user_id: str, **fields: Any) -> Goal:
        return self._add(Goal(user_id=user_id, **fields))

    def update_goal(self, goal_id: str, **fields: Any) -> Goal:
        return self._update(Goal, goal_id, "Goal", **fields)

    # ---- Activities ----
    def list_activities(self, user_id: str, limit: int = 10) -> List[Activity]:
        with self._session() as db:
            return (
                db.query(Activity)
                .filter(Activity.user_id == user_id)
                .order_by(Activity.timestamp.desc())
                .limit(limit)
                .all()
            )

    def create_activity(self, user_id: str, **fields: Any) -> Activity:
        return self._add(Activity(user_id=user_id, **fields))

    # ---- Projects ----
    def list_projects(self, user_id: str) -> List[Project]:
        with self._session() as db:
            return (
                db.query(Project)
                .filter(Project.user_id == user_id)
                .order_by(Project.created_at.desc())
                .all()
            )

    def list_all_projects(self) -> List[Project]:
        with self._session() as db:
            return db.query(Project).order_by(Project.created_at.desc()).all()

    def list_team_projects(self, team_id: str) -> List[Project]:
        with self._session() as db:
            return db.query(Project).filter(Project.team_id == team_id).all()

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._session() as db:
            return db.get(Project, project_id)

    def create_project(self, user_id: str, **fields: Any) -> Project:
        return self._add(Project(user_id=user_id, **fields))

    def update_project(self, project_id: str, **fields: Any) -> Project:
        return self._update(Project, project_id, "Project", touch=True, **fields)

    def list_project_updates(self, project_id: str) -> List[ProjectUpdate]:
        with self._session() as db:
            return (
                db.query(ProjectUpdate)
                .filter(ProjectUpdate.project_id == project_id)
                .order_by(ProjectUpdate.created_at.desc())
                .all()
            )

    def create_project_update(self, user_id: str, project_id: str, **fields: Any) -> ProjectUpdate:
        return self._add(ProjectUpdate(user_id=user_id, project_id=project_id, **fields))

    # ---- Teams & memberships ----
    def list_teams(self) -> List[Team]:
        with self._session() as db:
            return db.query(Team).order_by(Team.created_at.desc()).all()

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._session() as db:
            return db.get(Team, team_id)

    def create_team(self, user_id: str, **fields: Any) -> Team:
        return self._add(Team(created_by=user_id, **fields))

    def list_memberships(self) -> List[TeamMembership]:
        with self._session() as db:
            return db.query(TeamMembership).order_by(TeamMembership.joined_at.desc()).all()

    def list_user_teams(self, user_id: str) -> List[TeamMembership]:
        with self._session() as db:
            return db.query(TeamMembership).filter(TeamMembership.user_id == user_id).all()

    def list_team_members(self, team_id: str) -> List[TeamMembership]:
        with self._session() as db:
            return db.query(TeamMembership).filter(TeamMembership.team_id == team_id).all()

    def create_membership(self, user_id: str, team_id: str) -> TeamMembership:
        return self._add(
            TeamMembership(user_id=user_id, team_id=team_id, status=MembershipStatus.PENDING)
        )

    def update_membership_status(
        self, membership_id: str, status: MembershipStatus
    ) -> TeamMembership:
        return self._update(TeamMembership, membership_id, "Membership", status=status)

    # ---- Tasks ----
    def list_tasks(self, user_id: str) -> List[Task]:
        with self._session() as db:
            return (
                db.query(Task)
                .filter(Task.user_id == user_id)
                .order_by(Task.created_at.desc())
                .all()
            )

    def list_user_tasks(self, user_id: str) -> List[Task]:
        with self._session() as db:
            return db.query(Task).filter(Task.user_id == user_id).all()

    def list_recent_tasks(self, user_id: str, limit: int = 5) -> List[Task]:
        with self._session() as db:
            return (
                db.query(Task)
                .filter(Task.user_id == user_id)
                .order_by(Task.updated_at.desc())
                .limit(limit)
                .all()
            )

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._session() as db:
            return db.get(Task, task_id)

    def create_task(self, user_id: str, **fields: Any) -> Task:
        return self._add(Task(user_id=user_id, **fields))

    def update_task(self, task_id: str, **fields: Any) -> Task:
        return self._update(Task, task_id, "Task", touch=True, **fields)

    # ---- User updates ----
    def list_user_updates(self, user_id: str) -> List[UserUpdate]:
        with self._session() as db:
            return (
                db.query(UserUpdate)
                .filter(UserUpdate.user_id == user_id)
                .order_by(UserUpdate.created_at.desc())
                .all()
            )

    def list_team_updates(self, team_id: str) -> List[UserUpdate]:
        with self._session() as db:
            return (
                db.query(UserUpdate)
                .filter(UserUpdate.team_id == team_id)
                .order_by(UserUpdate.created_at.desc())
                .all()
            )

    def list_recent_updates(self, limit: int = 10) -> List[UserUpdate]:
        with self._session() as db:
            return (
                db.query(UserUpdate)
                .order_by(UserUpdate.created_at.desc())
                .limit(limit)
                .all()
            )

    def create_user_update(self, user_id: str, **fields: Any) -> UserUpdate:
        return self._add(UserUpdate(user_id=user_id, **fields))

    def update_user_update(self, update_id: str, **fields: Any) -> UserUpdate:
        return self._update(UserUpdate, update_id, "Update", touch=True, **fields)

    # ---- Counters ----
    def count_users_by_status(self) -> Dict[UserStatus, int]:
        with self._session() as db:
            rows = db.query(User.status, func.count(User.id)).group_by(User.status).all()
        counts = {status: 0 for status in UserStatus}
        for status, count in rows:
            counts[UserStatus(status)] = count
        return counts

    def count_teams(self) -> int:
        with self._session() as db:
            return db.query(func.count(Team.id)).scalar() or 0

    def count_projects(self, status: Optional[ProjectStatus] = None) -> int:
        with self._session() as db:
            query = db.query(func.count(Project.id))
            if status is not None:
                query = query.filter(Project.status == status)
            return query.scalar() or 0

    def count_tasks(self, status: Optional[TaskStatus] = None) -> int:
        with self._session() as db:
            query = db.query(func.count(Task.id))
            if status is not None:
                query = query.filter(Task.status == status)
            return query.scalar() or 0

    def ping(self) -> bool:
        with self._session() as db:
            db.execute(text("SELECT 1"))
        return True
