"""Task and UserUpdate models."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from teampulse.db.base import Base, generate_uuid, utcnow


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"
    REVIEW = "REVIEW"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Task(Base):
    """Unit of work owned by a user, optionally tied to a team and project."""
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    ticket_number = Column(String(100), nullable=True)
    status = Column(Enum(TaskStatus, validate_strings=True), default=TaskStatus.TODO, nullable=False)
    priority = Column(
        Enum(TaskPriority, validate_strings=True), default=TaskPriority.MEDIUM, nullable=False
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    estimated_hours = Column(Integer, nullable=True)
    actual_hours = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    project = relationship("Project", lazy="joined")


class UserUpdate(Base):
    """Free-text progress log entry, optionally tied to a team, project or task."""
    __tablename__ = "user_updates"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True, index=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=True)
    task_id = Column(String(36), ForeignKey("tasks.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    ticket_number = Column(String(100), nullable=True)
    work_hours = Column(Integer, default=0, nullable=False)
    status = Column(
        Enum(TaskStatus, validate_strings=True), default=TaskStatus.IN_PROGRESS, nullable=False
    )
    priority = Column(
        Enum(TaskPriority, validate_strings=True), default=TaskPriority.MEDIUM, nullable=False
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", lazy="joined")
    team = relationship("Team", lazy="joined")
    project = relationship("Project", lazy="joined")
