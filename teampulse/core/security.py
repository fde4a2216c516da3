"""Password hashing, session cookies and the authorization gate."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request, Response
from jose import JWTError, jwt

from teampulse.core.config import settings
from teampulse.core.deps import get_oidc_provider, get_session_store, get_storage
from teampulse.core.exceptions import AuthenticationError, AuthorizationError
from teampulse.models.user import User, UserRole, UserStatus
from teampulse.services.oidc_service import OIDCProvider
from teampulse.services.session_service import SessionData, SessionStore, ensure_fresh
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.auth")

SESSION_COOKIE_ALGORITHM = "HS256"


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Raises:
        ValueError: If ``hashed_password`` is not a bcrypt hash.
    """
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


# ---- Session cookie ----
def sign_session_id(sid: str) -> str:
    """Wrap a session id in a signed token for the cookie."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.SESSION_TTL_SECONDS)
    return jwt.encode(
        {"sid": sid, "exp": expire},
        settings.SESSION_SECRET,
        algorithm=SESSION_COOKIE_ALGORITHM,
    )


def unsign_session_id(token: str) -> Optional[str]:
    """Session id from a cookie value, or None if the signature does not check out."""
    try:
        payload = jwt.decode(
            token, settings.SESSION_SECRET, algorithms=[SESSION_COOKIE_ALGORITHM]
        )
    except JWTError:
        return None
    return payload.get("sid")


def set_session_cookie(response: Response, sid: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sign_session_id(sid),
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="none" if settings.SESSION_COOKIE_SECURE else "lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")


def read_session_id(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return unsign_session_id(token)


# ---- Authorization gate ----
@dataclass
class CurrentSession:
    sid: str
    data: SessionData


async def get_current_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    provider: Optional[OIDCProvider] = Depends(get_oidc_provider),
) -> CurrentSession:
    """Valid (or successfully refreshed) session, else 401."""
    sid = read_session_id(request)
    if sid is None:
        raise AuthenticationError("Unauthorized")
    data = store.get(sid)
    if data is None:
        raise AuthenticationError("Unauthorized")
    data = await ensure_fresh(store, sid, data, provider)
    return CurrentSession(sid=sid, data=data)


async def get_current_user(
    request: Request,
    current: CurrentSession = Depends(get_current_session),
    storage: Storage = Depends(get_storage),
) -> User:
    user = storage.get_user(current.data.user_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    request.state.user_id = user.id
    return user


async def require_approved(user: User = Depends(get_current_user)) -> User:
    """Account-status gate: only APPROVED users reach normal functionality."""
    if user.status == UserStatus.PENDING:
        raise AuthorizationError("Account is pending approval")
    if user.status != UserStatus.APPROVED:
        raise AuthorizationError("Account has been rejected")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise AuthorizationError("Admin access required")
    return user
