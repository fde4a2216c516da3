"""API tests for the federated sign-in flow with a stubbed issuer client."""

import time
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from teampulse.core.config import settings
from teampulse.core.exceptions import IdentityProviderError
from teampulse.main import create_app
from teampulse.models.user import UserStatus
from teampulse.services.oidc_service import OIDCConfig, OIDCProvider, OIDCTokens

ISSUER = "https://issuer.example.com"
AUTHORIZE_URL = f"{ISSUER}/authorize?client_id=c"


def _tokens(**overrides):
    claims = {
        "iss": ISSUER,
        "aud": "c",
        "sub": "sub-1",
        "email": "fed@example.com",
        "given_name": "Fed",
        "family_name": "User",
        "exp": int(time.time()) + 3600,
        **overrides,
    }
    return OIDCTokens(
        access_token="at-1",
        id_token=jwt.encode(claims, "issuer-key", algorithm="HS256"),
        token_type="Bearer",
        expires_in=3600,
        refresh_token="rt-1",
    )


@pytest.fixture
def provider():
    provider = OIDCProvider(
        OIDCConfig(issuer_url=ISSUER, client_id="c", client_secret="s")
    )
    provider.get_authorization_url = AsyncMock(return_value=AUTHORIZE_URL)

    # ID tokens echo the nonce of the latest login unless a test overrides claims
    provider.id_token_claims = {}

    def issue(code, redirect_uri):
        nonce = provider.get_authorization_url.call_args.args[2]
        return _tokens(**{"nonce": nonce, **provider.id_token_claims})

    provider.exchange_code = AsyncMock(side_effect=issue)
    provider.refresh = AsyncMock(return_value=_tokens(exp=int(time.time()) + 7200))
    provider.end_session_url = AsyncMock(return_value="https://issuer.example.com/logout?x=1")
    return provider


@pytest.fixture
def oidc_client(monkeypatch, storage, session_store, provider):
    monkeypatch.setattr(settings, "OIDC_ALLOWED_DOMAINS", ["testserver"])
    app = create_app(storage=storage, session_store=session_store, oidc_provider=provider)
    with TestClient(app) as c:
        yield c


def _login(client, provider):
    response = client.get("/api/login", follow_redirects=False)
    assert response.status_code == 302
    redirect_uri, state, nonce = provider.get_authorization_url.call_args.args
    return response, redirect_uri, state


def test_login_redirects_to_issuer(oidc_client, provider):
    response, redirect_uri, state = _login(oidc_client, provider)
    assert response.headers["location"] == AUTHORIZE_URL
    assert redirect_uri == "https://testserver/api/callback"
    assert state
    assert settings.SESSION_COOKIE_NAME in oidc_client.cookies


def test_login_from_unknown_domain(monkeypatch, oidc_client):
    monkeypatch.setattr(settings, "OIDC_ALLOWED_DOMAINS", ["app.example.com"])
    response = oidc_client.get("/api/login", follow_redirects=False)
    assert response.status_code == 400


def test_callback_signs_in_and_upserts_pending_user(oidc_client, provider, storage):
    _, redirect_uri, state = _login(oidc_client, provider)

    response = oidc_client.get(
        "/api/callback", params={"code": "code-1", "state": state}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    provider.exchange_code.assert_awaited_once_with("code-1", redirect_uri)
    user = storage.get_user("sub-1")
    assert user.email == "fed@example.com"
    assert user.status == UserStatus.PENDING

    me = oidc_client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["id"] == "sub-1"
    assert oidc_client.get("/api/goals").status_code == 403


def test_callback_is_idempotent_for_returning_user(oidc_client, provider, storage):
    for _ in range(2):
        _, _, state = _login(oidc_client, provider)
        oidc_client.get("/api/callback", params={"code": "c", "state": state}, follow_redirects=False)
    assert len(storage.list_users()) == 1


def test_callback_with_wrong_state_restarts_login(oidc_client, provider):
    _login(oidc_client, provider)
    response = oidc_client.get(
        "/api/callback", params={"code": "code-1", "state": "forged"}, follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/api/login"
    provider.exchange_code.assert_not_awaited()


def test_callback_issuer_failure_restarts_login(oidc_client, provider):
    provider.exchange_code.side_effect = IdentityProviderError("refused")
    _, _, state = _login(oidc_client, provider)
    response = oidc_client.get(
        "/api/callback", params={"code": "code-1", "state": state}, follow_redirects=False
    )
    assert response.headers["location"] == "/api/login"


def test_expired_session_refreshes_once(oidc_client, provider, storage):
    provider.id_token_claims["exp"] = int(time.time()) - 10
    _, _, state = _login(oidc_client, provider)
    oidc_client.get("/api/callback", params={"code": "c", "state": state}, follow_redirects=False)

    assert oidc_client.get("/api/auth/user").status_code == 200
    provider.refresh.assert_awaited_once_with("rt-1")
    assert oidc_client.get("/api/auth/user").status_code == 200
    provider.refresh.assert_awaited_once()


def test_failed_refresh_signs_out(oidc_client, provider):
    provider.id_token_claims["exp"] = int(time.time()) - 10
    provider.refresh.side_effect = IdentityProviderError("refused")
    _, _, state = _login(oidc_client, provider)
    oidc_client.get("/api/callback", params={"code": "c", "state": state}, follow_redirects=False)

    assert oidc_client.get("/api/auth/user").status_code == 401
    assert oidc_client.get("/api/auth/user").status_code == 401
    provider.refresh.assert_awaited_once()


def test_logout_goes_through_issuer(oidc_client, provider):
    _, _, state = _login(oidc_client, provider)
    oidc_client.get("/api/callback", params={"code": "c", "state": state}, follow_redirects=False)

    response = oidc_client.get("/api/logout", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "https://issuer.example.com/logout?x=1"
    post_logout, id_token_hint = provider.end_session_url.call_args.args
    assert post_logout == "http://testserver"
    assert id_token_hint
    assert oidc_client.get("/api/auth/user").status_code == 401


def test_oidc_routes_absent_when_disabled(client):
    assert client.get("/api/login", follow_redirects=False).status_code == 404


@pytest.mark.parametrize("claims", [
    {"nonce": "attacker-nonce"},
    {"aud": "other-client"},
    {"iss": "https://evil.example.com"},
])
def test_callback_rejects_id_token_from_another_login(oidc_client, provider, storage, claims):
    provider.id_token_claims.update(claims)
    _, _, state = _login(oidc_client, provider)

    response = oidc_client.get(
        "/api/callback", params={"code": "code-1", "state": state}, follow_redirects=False
    )

    assert response.headers["location"] == "/api/login"
    assert storage.get_user("sub-1") is None
    assert oidc_client.get("/api/auth/user").status_code == 401
