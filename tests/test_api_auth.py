"""API tests for local auth and the authorization gate."""

import asyncio
import threading

import httpx
from conftest import PASSWORD, make_user, sign_in

from teampulse.core.config import settings
from teampulse.models.user import UserStatus
from teampulse.services import auth_service as auth_service_module


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Request-Id" in response.headers


def test_signup_creates_pending_account(client, storage):
    response = client.post("/api/auth/signup", json={
        "email": "new@example.com", "password": "longenough",
        "firstName": "New", "lastName": "Person",
    })
    assert response.status_code == 201
    assert "approval" in response.json()["message"]
    assert storage.get_user_by_email("new@example.com").status == UserStatus.PENDING


def test_signup_duplicate_email(client, approved_user):
    response = client.post("/api/auth/signup", json={
        "email": approved_user.email, "password": "longenough",
        "firstName": "A", "lastName": "B",
    })
    assert response.status_code == 400
    assert response.json() == {"message": "User already exists with this email"}


def test_signup_invalid_body(client):
    response = client.post("/api/auth/signup", json={"email": "x@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid data"
    assert body["errors"]


def test_signin_returns_user_without_password(client, approved_user):
    body = sign_in(client, approved_user.email)
    assert body["id"] == approved_user.id
    assert body["firstName"] == "Test"
    assert "passwordHash" not in body and "password_hash" not in body
    assert settings.SESSION_COOKIE_NAME in client.cookies


def test_signin_bad_credentials(client, approved_user):
    wrong = client.post("/api/auth/signin", json={"email": approved_user.email, "password": "nope"})
    unknown = client.post("/api/auth/signin", json={"email": "ghost@example.com", "password": "nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"message": "Invalid email or password"}


def test_signin_pending_and_rejected(client, storage):
    make_user(storage, "pending@example.com", status=UserStatus.PENDING)
    make_user(storage, "rejected@example.com", status=UserStatus.REJECTED)

    pending = client.post("/api/auth/signin", json={"email": "pending@example.com", "password": PASSWORD})
    rejected = client.post("/api/auth/signin", json={"email": "rejected@example.com", "password": PASSWORD})

    assert pending.status_code == 403
    assert pending.json()["message"] == "Account is pending approval"
    assert rejected.status_code == 403
    assert rejected.json()["message"] == "Account has been rejected"
    assert settings.SESSION_COOKIE_NAME not in client.cookies


def test_current_user(user_client, approved_user):
    response = user_client.get("/api/auth/user")
    assert response.status_code == 200
    assert response.json()["email"] == approved_user.email


def test_protected_routes_need_session(client):
    for path in ("/api/auth/user", "/api/daily-updates", "/api/admin/users"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}


def test_forged_cookie_is_unauthorized(client):
    client.cookies.set(settings.SESSION_COOKIE_NAME, "forged.token.value")
    assert client.get("/api/auth/user").status_code == 401


def test_signout_ends_session(user_client, session_store):
    response = user_client.post("/api/auth/signout")
    assert response.status_code == 200
    assert response.json() == {"message": "Signed out successfully"}
    assert user_client.get("/api/auth/user").status_code == 401


def test_user_rejected_after_signin_loses_access(user_client, storage, approved_user):
    storage.update_user_status(approved_user.id, UserStatus.REJECTED)
    response = user_client.get("/api/goals")
    assert response.status_code == 403
    assert response.json()["message"] == "Account has been rejected"
    assert user_client.get("/api/auth/user").status_code == 200


def test_pending_session_sees_profile_but_not_data(client, storage, session_store):
    from teampulse.core.security import sign_session_id
    from teampulse.services.session_service import AuthMode, SessionData

    user = make_user(storage, "waiting@example.com", status=UserStatus.PENDING)
    sid = session_store.create(SessionData(user_id=user.id, auth_mode=AuthMode.local))
    client.cookies.set(settings.SESSION_COOKIE_NAME, sign_session_id(sid))

    assert client.get("/api/auth/user").json()["status"] == "PENDING"
    response = client.get("/api/daily-updates")
    assert response.status_code == 403
    assert response.json()["message"] == "Account is pending approval"


def test_signin_is_rate_limited(client, approved_user):
    limit = int(settings.AUTH_RATE_LIMIT.split("/")[0])
    for _ in range(limit):
        client.post("/api/auth/signin", json={"email": approved_user.email, "password": "nope"})
    response = client.post("/api/auth/signin", json={"email": approved_user.email, "password": PASSWORD})
    assert response.status_code == 429
    assert "message" in response.json()


def test_access_log_names_user_and_echoes_request_id(user_client, approved_user, caplog):
    with caplog.at_level("INFO", logger="teampulse.access"):
        response = user_client.get("/api/auth/user", headers={"X-Request-Id": "rid-123"})
    assert response.headers["X-Request-Id"] == "rid-123"
    line = [r.getMessage() for r in caplog.records if r.name == "teampulse.access"][-1]
    assert f"user={approved_user.id}" in line
    assert "rid=rid-123" in line


async def test_signup_hashing_leaves_event_loop_free(app, monkeypatch):
    hashing = threading.Event()
    released = threading.Event()
    outcome = {}

    def slow_hash(password, rounds=None):
        hashing.set()
        outcome["released"] = released.wait(timeout=5)
        return "hashed"

    monkeypatch.setattr(auth_service_module, "hash_password", slow_hash)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        signup = asyncio.create_task(ac.post("/api/auth/signup", json={
            "email": "slow@example.com", "password": "longenough",
            "firstName": "Slow", "lastName": "Hash",
        }))
        assert await asyncio.to_thread(hashing.wait, 5)

        health = await ac.get("/api/health")
        released.set()
        created = await signup

    assert health.status_code == 200
    assert created.status_code == 201
    assert outcome["released"] is True
