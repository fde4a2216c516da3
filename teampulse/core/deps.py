"""Request-scoped access to the backends created at startup."""

from typing import Optional

from fastapi import Request

from teampulse.services.oidc_service import OIDCProvider
from teampulse.services.session_service import SessionStore
from teampulse.storage.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_oidc_provider(request: Request) -> Optional[OIDCProvider]:
    return request.app.state.oidc_provider
