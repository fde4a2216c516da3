"""Server-side HTTP session rows."""

from sqlalchemy import Column, String, Text, DateTime
from teampulse.db.base import Base


class HttpSession(Base):
    """Serialized session keyed by session id; swept by ``expire``."""
    __tablename__ = "sessions"

    sid = Column(String(128), primary_key=True)
    sess = Column(Text, nullable=False)
    expire = Column(DateTime(timezone=True), nullable=False, index=True)
