"""Server-side sessions and the access-token freshness check."""

import enum
import logging
import secrets
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from teampulse.core.config import settings
from teampulse.core.exceptions import AuthenticationError, IdentityProviderError
from teampulse.db.base import utcnow
from teampulse.models.session import HttpSession
from teampulse.services.oidc_service import OIDCProvider, OIDCTokens

logger = logging.getLogger("teampulse.sessions")


class AuthMode(str, enum.Enum):
    local = "local"
    oidc = "oidc"


class SessionData(BaseModel):
    """Everything a session carries; ``user_id`` is set once authenticated."""

    user_id: Optional[str] = None
    auth_mode: Optional[AuthMode] = None

    # Identity claims (federated sessions)
    subject: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    # Issuer tokens; expires_at is unix seconds
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_at: Optional[int] = None

    # Pending authorization-code callback
    oidc_state: Optional[str] = None
    oidc_nonce: Optional[str] = None
    redirect_uri: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def apply_claims(self, claims: Dict[str, Any]) -> None:
        self.subject = claims.get("sub", self.subject)
        self.email = claims.get("email", self.email)
        self.first_name = claims.get("given_name") or claims.get("first_name") or self.first_name
        self.last_name = claims.get("family_name") or claims.get("last_name") or self.last_name
        self.profile_image_url = (
            claims.get("picture") or claims.get("profile_image_url") or self.profile_image_url
        )

    def apply_tokens(self, tokens: OIDCTokens, claims: Optional[Dict[str, Any]] = None) -> None:
        """Overwrite tokens and expiry; a refresh may omit the ID token."""
        self.access_token = tokens.access_token
        if tokens.refresh_token:
            self.refresh_token = tokens.refresh_token
        if tokens.id_token:
            self.id_token = tokens.id_token
        if claims:
            self.apply_claims(claims)
        if claims and claims.get("exp"):
            self.expires_at = int(claims["exp"])
        else:
            self.expires_at = int(time.time()) + tokens.expires_in


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Persistence for sessions; expired entries behave as absent."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    def _expiry(self) -> datetime:
        return utcnow() + timedelta(seconds=self.ttl_seconds)

    def create(self, data: SessionData) -> str:
        sid = new_session_id()
        self.save(sid, data)
        return sid

    @abstractmethod
    def get(self, sid: str) -> Optional[SessionData]: ...

    @abstractmethod
    def save(self, sid: str, data: SessionData) -> None: ...

    @abstractmethod
    def destroy(self, sid: str) -> None: ...

    @abstractmethod
    def prune_expired(self) -> int:
        """Delete expired sessions and return how many were removed."""


class SqlSessionStore(SessionStore):
    """Sessions in the ``sessions`` table."""

    def __init__(self, session_factory: sessionmaker, ttl_seconds: Optional[int] = None):
        super().__init__(ttl_seconds)
        self._session_factory = session_factory

    def get(self, sid: str) -> Optional[SessionData]:
        with self._session_factory() as db:
            row = db.get(HttpSession, sid)
        if row is None or _as_utc(row.expire) <= utcnow():
            return None
        return SessionData.model_validate_json(row.sess)

    def save(self, sid: str, data: SessionData) -> None:
        with self._session_factory() as db:
            row = db.get(HttpSession, sid)
            if row is None:
                row = HttpSession(sid=sid)
                db.add(row)
            row.sess = data.model_dump_json()
            row.expire = self._expiry()
            db.commit()

    def destroy(self, sid: str) -> None:
        with self._session_factory() as db:
            db.query(HttpSession).filter(HttpSession.sid == sid).delete()
            db.commit()

    def prune_expired(self) -> int:
        with self._session_factory() as db:
            removed = db.query(HttpSession).filter(HttpSession.expire <= utcnow()).delete()
            db.commit()
        return removed


class MemorySessionStore(SessionStore):
    """Dict-backed sessions for development and tests."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        super().__init__(ttl_seconds)
        self._sessions: Dict[str, Tuple[str, datetime]] = {}

    def get(self, sid: str) -> Optional[SessionData]:
        entry = self._sessions.get(sid)
        if entry is None or entry[1] <= utcnow():
            return None
        return SessionData.model_validate_json(entry[0])

    def save(self, sid: str, data: SessionData) -> None:
        self._sessions[sid] = (data.model_dump_json(), self._expiry())

    def destroy(self, sid: str) -> None:
        self._sessions.pop(sid, None)

    def prune_expired(self) -> int:
        now = utcnow()
        expired = [sid for sid, (_, expire) in self._sessions.items() if expire <= now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=utcnow().tzinfo)
    return value


async def ensure_fresh(
    store: SessionStore,
    sid: str,
    data: SessionData,
    provider: Optional[OIDCProvider],
    now: Optional[int] = None,
) -> SessionData:
    """Return a usable session or raise ``AuthenticationError``.

    Local sessions are bounded by the store TTL only. Federated sessions whose
    access token has expired get exactly one refresh attempt; a failed refresh
    destroys the session so the user must sign in again.
    """
    if not data.is_authenticated:
        raise AuthenticationError("Unauthorized")
    if data.auth_mode == AuthMode.local:
        return data
    if data.expires_at is None:
        raise AuthenticationError("Unauthorized")

    now = int(time.time()) if now is None else now
    if now <= data.expires_at:
        return data

    if not data.refresh_token or provider is None:
        raise AuthenticationError("Unauthorized")

    try:
        tokens = await provider.refresh(data.refresh_token)
        claims = provider.parse_id_token_claims(tokens.id_token) if tokens.id_token else None
    except IdentityProviderError:
        logger.info("Token refresh failed for user %s; session terminated", data.user_id)
        store.destroy(sid)
        raise AuthenticationError("Unauthorized")

    data.apply_tokens(tokens, claims)
    store.save(sid, data)
    logger.debug("Refreshed access token for user %s", data.user_id)
    return data
