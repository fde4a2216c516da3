"""Auth API router: local sign-up, sign-in, sign-out and current user."""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from teampulse.core.config import settings
from teampulse.core.deps import get_session_store, get_storage
from teampulse.core.exceptions import AuthenticationError, AuthorizationError
from teampulse.core.rate_limiter import limiter
from teampulse.core.security import (
    clear_session_cookie, get_current_user, read_session_id, set_session_cookie,
)
from teampulse.models.user import User, UserStatus
from teampulse.schemas.schemas import MessageResponse, SigninRequest, SignupRequest, UserOut
from teampulse.services.auth_service import auth_service
from teampulse.services.session_service import AuthMode, SessionData, SessionStore
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def signup(request: Request, body: SignupRequest, storage: Storage = Depends(get_storage)):
    """Register a local account; it stays PENDING until an admin approves it.

    Plain ``def`` so bcrypt runs in the threadpool, off the event loop.
    """
    auth_service.register(
        storage, body.email, body.password, body.first_name, body.last_name
    )
    return MessageResponse(message="Account created successfully. Awaiting admin approval.")


@router.post("/signin", response_model=UserOut)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def signin(
    request: Request,
    response: Response,
    body: SigninRequest,
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
):
    """Check credentials and open a session for approved users."""
    user = auth_service.authenticate(storage, body.email, body.password)
    if user is None:
        raise AuthenticationError("Invalid email or password")
    if user.status == UserStatus.PENDING:
        raise AuthorizationError("Account is pending approval")
    if user.status != UserStatus.APPROVED:
        raise AuthorizationError("Account has been rejected")

    previous = read_session_id(request)
    if previous:
        store.destroy(previous)
    sid = store.create(SessionData(user_id=user.id, auth_mode=AuthMode.local, email=user.email))
    set_session_cookie(response, sid)
    logger.info("User %s signed in", user.id)
    return user


@router.post("/signout", response_model=MessageResponse)
async def signout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
):
    sid = read_session_id(request)
    if sid:
        store.destroy(sid)
    clear_session_cookie(response)
    return MessageResponse(message="Signed out successfully")


@router.get("/user", response_model=UserOut)
async def current_user(user: User = Depends(get_current_user)):
    """Current user profile, reachable while the account awaits approval."""
    return user
