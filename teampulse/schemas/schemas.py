"""Pydantic schemas for API request/response serialization.

Responses are emitted with camelCase keys; requests accept camelCase or
snake_case.
"""

from datetime import datetime
from typing import Optional, List, Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from teampulse.models.user import UserRole, UserStatus
from teampulse.models.team import MembershipRole, MembershipStatus
from teampulse.models.project import ProjectStatus, ProjectPriority, ProjectUpdateStatus
from teampulse.models.task import TaskStatus, TaskPriority
from teampulse.models.progress import GoalType, ActivityType


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# ---- Auth ----
class SignupRequest(CamelModel):
    email: str = Field(..., min_length=4, max_length=255)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)

class SigninRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ---- User ----
class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class UserStatusUpdate(CamelModel):
    status: UserStatus

class UserRoleUpdate(CamelModel):
    role: UserRole


# ---- Daily updates ----
class DailyUpdateCreate(CamelModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    tasks_completed: int = Field(0, ge=0)
    hours_worked: int = Field(0, ge=0)  # minutes
    mood: int = Field(3, ge=1, le=5)
    notes: Optional[str] = ""

    @field_validator("date")
    @classmethod
    def real_calendar_date(cls, value: str) -> str:
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError as exc:
            raise ValueError("date must be a real calendar day") from exc
        return value

class DailyUpdateOut(CamelModel):
    id: str
    user_id: str
    date: str
    tasks_completed: int
    hours_worked: int
    mood: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# ---- Goals ----
class GoalCreate(CamelModel):
    title: str = Field(..., min_length=1)
    target: int = Field(..., ge=1)
    type: GoalType

class GoalPatch(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    target: Optional[int] = Field(None, ge=1)
    current: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

class GoalOut(CamelModel):
    id: str
    user_id: str
    title: str
    target: int
    current: int
    type: GoalType
    is_active: bool
    created_at: Optional[datetime] = None


# ---- Activities ----
class ActivityOut(CamelModel):
    id: str
    user_id: str
    type: ActivityType
    description: str
    timestamp: Optional[datetime] = None


# ---- Teams ----
class TeamCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class TeamOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class JoinTeamRequest(CamelModel):
    team_id: str = Field(..., min_length=1)

class MembershipStatusUpdate(CamelModel):
    status: MembershipStatus

class MembershipOut(CamelModel):
    id: str
    user_id: str
    team_id: str
    role: MembershipRole
    status: MembershipStatus
    joined_at: Optional[datetime] = None

class UserTeamOut(MembershipOut):
    team: Optional[TeamOut] = None

class TeamMemberOut(MembershipOut):
    user: Optional[UserOut] = None

class MembershipDetailOut(MembershipOut):
    team: Optional[TeamOut] = None
    user: Optional[UserOut] = None


# ---- Projects ----
class ProjectCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    ticket_number: Optional[str] = None
    team_id: Optional[str] = None
    status: ProjectStatus = ProjectStatus.active
    priority: ProjectPriority = ProjectPriority.medium
    due_date: Optional[datetime] = None

    blank_refs_to_none = field_validator("team_id", "ticket_number", mode="before")(_blank_to_none)

class ProjectPatch(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    ticket_number: Optional[str] = None
    team_id: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    due_date: Optional[datetime] = None

    blank_refs_to_none = field_validator("team_id", "ticket_number", mode="before")(_blank_to_none)

class ProjectOut(CamelModel):
    id: str
    user_id: str
    team_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    ticket_number: Optional[str] = None
    status: ProjectStatus
    priority: ProjectPriority
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProjectUpdateCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    status: ProjectUpdateStatus = ProjectUpdateStatus.progress
    hours_worked: int = Field(0, ge=0)

class ProjectUpdateOut(CamelModel):
    id: str
    project_id: str
    user_id: str
    title: str
    description: str
    status: ProjectUpdateStatus
    hours_worked: int
    created_at: Optional[datetime] = None


# ---- Tasks ----
class TaskCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    ticket_number: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    estimated_hours: Optional[int] = Field(None, ge=0)
    actual_hours: Optional[int] = Field(None, ge=0)

    blank_refs_to_none = field_validator(
        "team_id", "project_id", "ticket_number", "due_date", mode="before"
    )(_blank_to_none)

class TaskPatch(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    ticket_number: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[int] = Field(None, ge=0)
    actual_hours: Optional[int] = Field(None, ge=0)

    blank_refs_to_none = field_validator(
        "team_id", "project_id", "ticket_number", "due_date", mode="before"
    )(_blank_to_none)

class TaskOut(CamelModel):
    id: str
    user_id: str
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    ticket_number: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    estimated_hours: Optional[int] = None
    actual_hours: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TaskWithProjectOut(TaskOut):
    project: Optional[ProjectOut] = None


# ---- User updates ----
class UserUpdateCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    ticket_number: Optional[str] = None
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    work_hours: int = Field(0, ge=0, le=24)
    status: TaskStatus = TaskStatus.IN_PROGRESS
    priority: TaskPriority = TaskPriority.MEDIUM

    blank_refs_to_none = field_validator(
        "team_id", "project_id", "task_id", "ticket_number", mode="before"
    )(_blank_to_none)

class UserUpdateOut(CamelModel):
    id: str
    user_id: str
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    title: str
    description: str
    ticket_number: Optional[str] = None
    work_hours: int
    status: TaskStatus
    priority: TaskPriority
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TeamUpdateOut(UserUpdateOut):
    user: Optional[UserOut] = None
    project: Optional[ProjectOut] = None

class RecentUpdateOut(UserUpdateOut):
    user: Optional[UserOut] = None
    team: Optional[TeamOut] = None


# ---- Analytics ----
class WeeklyStat(CamelModel):
    date: str
    tasks: int
    hours: int

class MonthlyStats(CamelModel):
    tasks: int
    hours: int
    streak: int

class DashboardMetrics(CamelModel):
    tasks_completed: int
    tasks_change: str
    goal_progress: int
    time_spent: str
    time_spent_status: str
    productivity_score: int
    productivity_change: str
    current_streak: int

class UserMetricsOut(CamelModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    total_projects: int
    completed_projects: int
    task_completion_rate: int
    project_completion_rate: int

class TeamMetrics(CamelModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    total_members: int
    total_hours: int
    completion_rate: float

class AdminMetrics(CamelModel):
    total_users: int
    total_teams: int
    total_projects: int
    active_users: int
    pending_users: int
    completed_tasks: int
    task_completion_rate: int
    project_completion_rate: int


# ---- Export ----
class ExportSummary(CamelModel):
    total_updates: int
    total_goals: int
    total_activities: int
    total_projects: int

class ExportData(CamelModel):
    daily_updates: List[DailyUpdateOut]
    goals: List[GoalOut]
    activities: List[ActivityOut]
    projects: List[ProjectOut]

class ExportSnapshot(CamelModel):
    generated_at: datetime
    user_id: str
    summary: ExportSummary
    data: ExportData


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str


def changed_fields(body: BaseModel, *required: str) -> dict:
    """Fields the client actually sent; explicit nulls are dropped for ``required``."""
    fields = body.model_dump(exclude_unset=True)
    return {k: v for k, v in fields.items() if not (k in required and v is None)}
