"""Daily update, goal and activity models."""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
)
from teampulse.db.base import Base, generate_uuid, utcnow


class GoalType(str, enum.Enum):
    tasks = "tasks"
    hours = "hours"
    exercise = "exercise"
    reading = "reading"


class ActivityType(str, enum.Enum):
    task_completed = "task_completed"
    goal_added = "goal_added"
    time_updated = "time_updated"
    goal_reached = "goal_reached"


class DailyUpdate(Base):
    """One row per user per calendar day."""
    __tablename__ = "daily_updates"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_updates_user_date"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    tasks_completed = Column(Integer, default=0, nullable=False)
    hours_worked = Column(Integer, default=0, nullable=False)  # minutes
    mood = Column(Integer, default=3, nullable=False)  # 1-5
    notes = Column(Text, nullable=True, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Goal(Base):
    """Per-user numeric target with running progress."""
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    target = Column(Integer, nullable=False)
    current = Column(Integer, default=0, nullable=False)
    type = Column(Enum(GoalType, validate_strings=True), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Activity(Base):
    """Activity feed entry.

    Append-only: rows are written as a side effect of other writes and never
    updated or deleted.
    """
    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(ActivityType, validate_strings=True), nullable=False)
    description = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
