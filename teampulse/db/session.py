"""Database engine and session factory."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teampulse.core.config import settings


def create_db_engine(url: str, echo: Optional[bool] = None) -> Engine:
    """Create an engine for ``url``.

    SQLite URLs (used by the test-suite) share a single connection so that an
    in-memory database survives across sessions.
    """
    if echo is None:
        echo = settings.DEBUG
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_POOL_SIZE * 2,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit and close."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
