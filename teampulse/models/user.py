"""User model."""

import enum

from sqlalchemy import Column, String, DateTime, Enum
from teampulse.db.base import Base, generate_uuid, utcnow


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(Base):
    """Tracker user, local (password) or federated (subject id as primary key)."""
    __tablename__ = "users"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    role = Column(Enum(UserRole, validate_strings=True), default=UserRole.USER, nullable=False)
    status = Column(
        Enum(UserStatus, validate_strings=True), default=UserStatus.PENDING, nullable=False
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
