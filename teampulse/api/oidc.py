"""Federated sign-in router (OpenID Connect authorization-code flow)."""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from teampulse.core.config import settings
from teampulse.core.deps import get_oidc_provider, get_session_store, get_storage
from teampulse.core.exceptions import IdentityProviderError, ValidationError
from teampulse.core.security import clear_session_cookie, read_session_id, set_session_cookie
from teampulse.services.auth_service import auth_service
from teampulse.services.oidc_service import OIDCProvider
from teampulse.services.session_service import AuthMode, SessionData, SessionStore
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.oidc")

router = APIRouter(tags=["oidc"])

LOGIN_PATH = "/api/login"


def callback_url(request: Request) -> str:
    """Callback on the request host, which must be a registered domain."""
    domain = request.url.hostname
    if domain not in settings.OIDC_ALLOWED_DOMAINS:
        raise ValidationError(f"Unknown callback domain: {domain}")
    return f"https://{domain}/api/callback"


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


@router.get("/login")
async def login(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    provider: OIDCProvider = Depends(get_oidc_provider),
):
    """Start the flow: remember state and nonce, then send the browser to the issuer."""
    redirect_uri = callback_url(request)
    pending = SessionData(
        oidc_state=secrets.token_urlsafe(24),
        oidc_nonce=secrets.token_urlsafe(24),
        redirect_uri=redirect_uri,
    )
    url = await provider.get_authorization_url(redirect_uri, pending.oidc_state, pending.oidc_nonce)

    previous = read_session_id(request)
    if previous:
        store.destroy(previous)
    response = _redirect(url)
    set_session_cookie(response, store.create(pending))
    return response


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
    provider: OIDCProvider = Depends(get_oidc_provider),
):
    """Finish the flow and sign the user in; any failure restarts it."""
    sid = read_session_id(request)
    pending = store.get(sid) if sid else None
    if (
        pending is None
        or not code
        or not pending.oidc_state
        or not secrets.compare_digest(pending.oidc_state.encode(), (state or "").encode())
    ):
        logger.info("OIDC callback without a matching pending login")
        return _redirect(LOGIN_PATH)

    try:
        tokens = await provider.exchange_code(code, pending.redirect_uri)
        if not tokens.id_token:
            raise IdentityProviderError("Token response carries no ID token")
        claims = provider.parse_id_token_claims(tokens.id_token, nonce=pending.oidc_nonce)
        user = auth_service.upsert_federated_user(storage, claims)
    except (IdentityProviderError, ValidationError) as exc:
        logger.warning("OIDC callback failed: %s", exc.message)
        return _redirect(LOGIN_PATH)

    data = SessionData(user_id=user.id, auth_mode=AuthMode.oidc)
    data.apply_tokens(tokens, claims)

    # New id once authenticated so the pre-login cookie cannot be replayed
    store.destroy(sid)
    response = _redirect("/")
    set_session_cookie(response, store.create(data))
    logger.info("User %s signed in via OIDC", user.id)
    return response


@router.get("/logout")
async def logout(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    provider: OIDCProvider = Depends(get_oidc_provider),
):
    sid = read_session_id(request)
    data = store.get(sid) if sid else None
    if sid:
        store.destroy(sid)

    target = "/"
    if data is not None and data.auth_mode == AuthMode.oidc:
        home = f"{request.url.scheme}://{request.url.netloc}"
        try:
            target = await provider.end_session_url(home, data.id_token)
        except IdentityProviderError:
            target = home

    response = _redirect(target)
    clear_session_cookie(response)
    return response
