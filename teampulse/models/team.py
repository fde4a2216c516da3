"""Team and TeamMembership models."""

import enum

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from teampulse.db.base import Base, generate_uuid, utcnow


class MembershipRole(str, enum.Enum):
    MEMBER = "MEMBER"
    LEAD = "LEAD"


class MembershipStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Team(Base):
    """Named grouping of users, owned by its creator."""
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TeamMembership(Base):
    """Join request / membership of a user in a team, approved by an admin."""
    __tablename__ = "team_memberships"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        Enum(MembershipRole, validate_strings=True), default=MembershipRole.MEMBER, nullable=False
    )
    status = Column(
        Enum(MembershipStatus, validate_strings=True), default=MembershipStatus.PENDING, nullable=False
    )
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    team = relationship("Team", lazy="joined")
    user = relationship("User", lazy="joined")
