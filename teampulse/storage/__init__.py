"""Storage backends and the startup selection between them."""

import logging
from typing import Optional, Tuple

from teampulse.core.config import settings
from teampulse.db.base import Base
from teampulse.db.session import create_db_engine, create_session_factory
from teampulse.services.session_service import (
    MemorySessionStore, SessionStore, SqlSessionStore,
)
from teampulse.storage.base import Storage
from teampulse.storage.memory import MemStorage
from teampulse.storage.sql import SqlStorage

logger = logging.getLogger("teampulse.storage")

__all__ = ["Storage", "SqlStorage", "MemStorage", "build_backends"]


def build_backends(
    database_url: Optional[str] = None, create_tables: bool = False
) -> Tuple[Storage, SessionStore]:
    """Storage and session store for ``database_url`` (default: settings).

    Without a database URL both live in process memory, which is only fit for
    development since everything is lost on restart.
    """
    url = database_url or settings.DATABASE_URL
    if not url:
        logger.warning("DATABASE_URL is not set; using in-memory storage")
        return MemStorage(), MemorySessionStore()

    engine = create_db_engine(url)
    if create_tables:
        Base.metadata.create_all(bind=engine)
    factory = create_session_factory(engine)
    logger.info("Using SQL storage at %s", engine.url.render_as_string(hide_password=True))
    return SqlStorage(factory), SqlSessionStore(factory)
