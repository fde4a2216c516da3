"""Tests for the session stores and the token freshness check."""

import time
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from jose import jwt

from teampulse.core.exceptions import AuthenticationError, IdentityProviderError
from teampulse.services.oidc_service import DiscoveryCache, OIDCConfig, OIDCProvider, OIDCTokens
from teampulse.services.session_service import (
    AuthMode, MemorySessionStore, SessionData, SqlSessionStore, ensure_fresh,
)


@pytest.fixture(params=["memory", "sql"])
def store(request, session_factory):
    if request.param == "memory":
        return MemorySessionStore()
    return SqlSessionStore(session_factory)


def _federated(expires_at, refresh_token="rt-1"):
    return SessionData(
        user_id="sub-1",
        auth_mode=AuthMode.oidc,
        access_token="at-1",
        refresh_token=refresh_token,
        expires_at=expires_at,
    )


def _provider(tokens=None, error=None):
    provider = MagicMock()
    provider.refresh = AsyncMock(return_value=tokens, side_effect=error)
    provider.parse_id_token_claims = MagicMock(
        side_effect=lambda token: jwt.get_unverified_claims(token)
    )
    return provider


# ---- Stores ----
def test_store_round_trip(store):
    sid = store.create(SessionData(user_id="u1", auth_mode=AuthMode.local, email="a@b.c"))
    loaded = store.get(sid)
    assert loaded.user_id == "u1"
    assert loaded.auth_mode == AuthMode.local


def test_store_save_overwrites(store):
    sid = store.create(SessionData(oidc_state="s1"))
    store.save(sid, SessionData(user_id="u1"))
    assert store.get(sid).user_id == "u1"
    assert store.get(sid).oidc_state is None


def test_store_destroy(store):
    sid = store.create(SessionData(user_id="u1"))
    store.destroy(sid)
    assert store.get(sid) is None
    store.destroy(sid)  # already gone


def test_unknown_session_is_absent(store):
    assert store.get("no-such-sid") is None


def test_expired_sessions_are_absent_and_pruned(store):
    store.ttl_seconds = 0
    sid = store.create(SessionData(user_id="u1"))
    assert store.get(sid) is None
    assert store.prune_expired() == 1
    assert store.prune_expired() == 0


def test_prune_keeps_live_sessions(store):
    sid = store.create(SessionData(user_id="u1"))
    assert store.prune_expired() == 0
    assert store.get(sid) is not None


# ---- Freshness ----
async def test_unauthenticated_session_rejected(session_store):
    sid = session_store.create(SessionData(oidc_state="pending"))
    with pytest.raises(AuthenticationError):
        await ensure_fresh(session_store, sid, session_store.get(sid), _provider())


async def test_local_session_never_expires(session_store):
    data = SessionData(user_id="u1", auth_mode=AuthMode.local)
    sid = session_store.create(data)
    provider = _provider()
    assert await ensure_fresh(session_store, sid, data, provider, now=10**12) is data
    provider.refresh.assert_not_awaited()


async def test_valid_token_passes_without_refresh(session_store):
    data = _federated(expires_at=1000)
    sid = session_store.create(data)
    provider = _provider()

    result = await ensure_fresh(session_store, sid, data, provider, now=1000)

    assert result.access_token == "at-1"
    provider.refresh.assert_not_awaited()


async def test_federated_session_without_expiry_rejected(session_store):
    data = _federated(expires_at=None)
    sid = session_store.create(data)
    with pytest.raises(AuthenticationError):
        await ensure_fresh(session_store, sid, data, _provider())


async def test_expired_without_refresh_token_makes_no_call(session_store):
    data = _federated(expires_at=1000, refresh_token=None)
    sid = session_store.create(data)
    provider = _provider()

    with pytest.raises(AuthenticationError):
        await ensure_fresh(session_store, sid, data, provider, now=1001)

    provider.refresh.assert_not_awaited()


async def test_expired_token_refreshed_once(session_store):
    new_exp = int(time.time()) + 3600
    id_token = jwt.encode({"sub": "sub-1", "exp": new_exp, "email": "n@e.w"}, "k", algorithm="HS256")
    tokens = OIDCTokens(
        access_token="at-2", id_token=id_token, token_type="Bearer",
        expires_in=3600, refresh_token="rt-2",
    )
    data = _federated(expires_at=1000)
    sid = session_store.create(data)
    provider = _provider(tokens=tokens)

    result = await ensure_fresh(session_store, sid, data, provider, now=1001)

    provider.refresh.assert_awaited_once_with("rt-1")
    assert result.access_token == "at-2"
    assert result.expires_at == new_exp
    stored = session_store.get(sid)
    assert stored.refresh_token == "rt-2"
    assert stored.email == "n@e.w"


async def test_refresh_without_id_token_uses_expires_in(session_store):
    tokens = OIDCTokens(access_token="at-2", id_token=None, token_type="Bearer", expires_in=60)
    data = _federated(expires_at=1000)
    sid = session_store.create(data)
    before = int(time.time())

    result = await ensure_fresh(session_store, sid, data, _provider(tokens=tokens), now=1001)

    assert result.expires_at >= before + 60
    assert result.refresh_token == "rt-1"


async def test_failed_refresh_destroys_session(session_store):
    data = _federated(expires_at=1000)
    sid = session_store.create(data)
    provider = _provider(error=IdentityProviderError("refused"))

    with pytest.raises(AuthenticationError):
        await ensure_fresh(session_store, sid, data, provider, now=1001)

    provider.refresh.assert_awaited_once()
    assert session_store.get(sid) is None


@pytest.mark.parametrize("token_response", [
    httpx.Response(200, json={"error": "invalid_grant"}),
    httpx.Response(200, text="<html>oops</html>"),
])
async def test_malformed_refresh_response_destroys_session(
    monkeypatch, session_store, token_response
):
    issuer = "https://issuer.example.com"

    def answer(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/.well-known/openid-configuration":
            return httpx.Response(200, json={"issuer": issuer, "token_endpoint": f"{issuer}/token"})
        return token_response

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        httpx, "AsyncClient",
        lambda *args, **kwargs: real_client(transport=httpx.MockTransport(answer)),
    )
    provider = OIDCProvider(
        OIDCConfig(issuer_url=issuer, client_id="c", client_secret="s"), cache=DiscoveryCache()
    )
    data = _federated(expires_at=1000)
    sid = session_store.create(data)

    with pytest.raises(AuthenticationError):
        await ensure_fresh(session_store, sid, data, provider, now=1001)
    assert session_store.get(sid) is None
