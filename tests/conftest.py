"""
Test configuration and fixtures.

Provides:
- In-memory storage and session store wired into a fresh app per test
- SQLite-backed SqlStorage / SqlSessionStore
- Helpers to create users and sign in through the API
"""
import os

# Cheap hashing and a fixed cookie secret; must be set before settings load
os.environ["TESTING"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ.pop("DATABASE_URL", None)
os.environ["OIDC_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

import teampulse.models  # noqa: F401  registers every table
from teampulse.core.rate_limiter import limiter
from teampulse.core.security import hash_password
from teampulse.db.base import Base
from teampulse.db.session import create_db_engine, create_session_factory
from teampulse.main import create_app
from teampulse.models.user import UserRole, UserStatus
from teampulse.services.oidc_service import discovery_cache
from teampulse.services.session_service import MemorySessionStore, SqlSessionStore
from teampulse.storage import MemStorage, SqlStorage

PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def _reset_process_state():
    limiter.reset()
    discovery_cache.clear()
    yield
    discovery_cache.clear()


# =============================================================================
# Backends
# =============================================================================

@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://", echo=False)
    Base.metadata.create_all(bind=engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_storage(session_factory):
    return SqlStorage(session_factory)


@pytest.fixture
def sql_session_store(session_factory):
    return SqlSessionStore(session_factory)


# =============================================================================
# App / client
# =============================================================================

@pytest.fixture
def app(storage, session_store):
    return create_app(storage=storage, session_store=session_store)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def make_user(storage, email, status=UserStatus.APPROVED, role=UserRole.USER,
              password=PASSWORD, first_name="Test", last_name="User"):
    return storage.create_user(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        status=status,
    )


def sign_in(client, email, password=PASSWORD):
    response = client.post("/api/auth/signin", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def approved_user(storage):
    return make_user(storage, "alice@example.com")


@pytest.fixture
def user_client(client, approved_user):
    """Client signed in as an approved regular user."""
    sign_in(client, approved_user.email)
    return client


@pytest.fixture
def admin_user(storage):
    return make_user(storage, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def admin_client(client, admin_user):
    """Client signed in as an approved admin."""
    sign_in(client, admin_user.email)
    return client
