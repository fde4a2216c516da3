"""Project and ProjectUpdate models."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from teampulse.db.base import Base, generate_uuid, utcnow


class ProjectStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    archived = "archived"


class ProjectPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class ProjectUpdateStatus(str, enum.Enum):
    progress = "progress"
    completed = "completed"
    blocked = "blocked"
    issue = "issue"


class Project(Base):
    """Project belonging to a team, created by a user."""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    ticket_number = Column(String(100), nullable=True)
    status = Column(
        Enum(ProjectStatus, validate_strings=True), default=ProjectStatus.active, nullable=False
    )
    priority = Column(
        Enum(ProjectPriority, validate_strings=True), default=ProjectPriority.medium, nullable=False
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class ProjectUpdate(Base):
    """Progress note posted against a project."""
    __tablename__ = "project_updates"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        Enum(ProjectUpdateStatus, validate_strings=True),
        default=ProjectUpdateStatus.progress,
        nullable=False,
    )
    hours_worked = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
