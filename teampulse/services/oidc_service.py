"""OpenID Connect client for federated sign-in.

Handles the authorization-code flow:
1. Build the issuer authorization URL
2. Exchange the callback code for tokens
3. Refresh an expired access token
4. Build the end-session URL for sign-out
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx
from jose import JWTError, jwt

from teampulse.core.config import settings
from teampulse.core.exceptions import IdentityProviderError

logger = logging.getLogger("teampulse.oidc")


@dataclass
class OIDCConfig:
    """Issuer and client registration."""

    issuer_url: str
    client_id: str
    client_secret: str
    scopes: List[str] = field(
        default_factory=lambda: ["openid", "email", "profile", "offline_access"]
    )


@dataclass
class OIDCTokens:
    """Token set returned by the issuer's token endpoint."""

    access_token: str
    id_token: Optional[str]
    token_type: str
    expires_in: int
    refresh_token: Optional[str] = None


class DiscoveryCache:
    """Single cached discovery document with an explicit fetch timestamp."""

    def __init__(self):
        self._document: Optional[Dict[str, Any]] = None
        self._fetched_at = 0.0

    def get(self, ttl_seconds: float) -> Optional[Dict[str, Any]]:
        if self._document is None:
            return None
        if time.monotonic() - self._fetched_at >= ttl_seconds:
            return None
        return self._document

    def put(self, document: Dict[str, Any]) -> None:
        self._document = document
        self._fetched_at = time.monotonic()

    def clear(self) -> None:
        self._document = None
        self._fetched_at = 0.0


# Process-wide; racing re-fetches are harmless.
discovery_cache = DiscoveryCache()


class OIDCProvider:
    """Client for one OpenID Connect issuer."""

    def __init__(
        self,
        config: OIDCConfig,
        cache: Optional[DiscoveryCache] = None,
        discovery_ttl: Optional[int] = None,
    ):
        self._config = config
        self._cache = cache or discovery_cache
        self._discovery_ttl = (
            settings.OIDC_DISCOVERY_TTL_SECONDS if discovery_ttl is None else discovery_ttl
        )

    async def get_discovery(self) -> Dict[str, Any]:
        """Issuer metadata, re-fetched once the cached copy is older than the TTL."""
        cached = self._cache.get(self._discovery_ttl)
        if cached is not None:
            return cached

        url = f"{self._config.issuer_url.rstrip('/')}/.well-known/openid-configuration"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url)
                response.raise_for_status()
                document = response.json()
        except httpx.HTTPError as exc:
            logger.error("OIDC discovery failed for %s: %s", url, exc)
            raise IdentityProviderError("Identity provider unavailable") from exc

        self._cache.put(document)
        logger.info("Fetched OIDC discovery document from %s", url)
        return document

    async def get_authorization_url(self, redirect_uri: str, state: str, nonce: str) -> str:
        discovery = await self.get_discovery()
        params = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self._config.scopes),
            "state": state,
            "nonce": nonce,
            "prompt": "login consent",
        }
        return f"{discovery['authorization_endpoint']}?{urlencode(params)}"

    async def _token_request(self, data: Dict[str, str]) -> OIDCTokens:
        discovery = await self.get_discovery()
        payload = {
            **data,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(discovery["token_endpoint"], data=payload)
                response.raise_for_status()
                body = response.json()
            return OIDCTokens(
                access_token=body["access_token"],
                id_token=body.get("id_token"),
                token_type=body.get("token_type", "Bearer"),
                expires_in=int(body.get("expires_in", 3600)),
                refresh_token=body.get("refresh_token"),
            )
        # ValueError covers a non-JSON body and a malformed expires_in
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("OIDC %s request failed: %s", data["grant_type"], exc)
            raise IdentityProviderError("Identity provider rejected the request") from exc

    async def exchange_code(self, code: str, redirect_uri: str) -> OIDCTokens:
        """Exchange an authorization code for tokens.

        Raises:
            IdentityProviderError: If the issuer is unreachable or refuses the code.
        """
        return await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        })

    async def refresh(self, refresh_token: str) -> OIDCTokens:
        """Trade a refresh token for a new token set.

        Raises:
            IdentityProviderError: If the issuer is unreachable or refuses the token.
        """
        return await self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })

    def parse_id_token_claims(self, id_token: str, nonce: Optional[str] = None) -> Dict[str, Any]:
        """Claims of an ID token received directly from the token endpoint.

        The token arrives over TLS from the issuer itself, so the signature is
        not re-verified here. Issuer and audience are always checked; the
        nonce only when the caller started the flow with one (refreshed ID
        tokens carry none).

        Raises:
            IdentityProviderError: If the token is malformed or was not minted
                for this client, by this issuer, for this login.
        """
        try:
            claims = jwt.get_unverified_claims(id_token)
        except JWTError as exc:
            raise IdentityProviderError("Invalid ID token") from exc

        issuer = str(claims.get("iss", "")).rstrip("/")
        if issuer != self._config.issuer_url.rstrip("/"):
            raise IdentityProviderError("ID token issuer mismatch")

        audience = claims.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if self._config.client_id not in audiences:
            raise IdentityProviderError("ID token audience mismatch")

        if nonce is not None and not secrets.compare_digest(
            str(claims.get("nonce", "")).encode(), nonce.encode()
        ):
            raise IdentityProviderError("ID token nonce mismatch")
        return claims

    async def end_session_url(
        self, post_logout_redirect_uri: str, id_token_hint: Optional[str] = None
    ) -> str:
        discovery = await self.get_discovery()
        endpoint = discovery.get("end_session_endpoint")
        if not endpoint:
            return post_logout_redirect_uri
        params = {
            "client_id": self._config.client_id,
            "post_logout_redirect_uri": post_logout_redirect_uri,
        }
        if id_token_hint:
            params["id_token_hint"] = id_token_hint
        return f"{endpoint}?{urlencode(params)}"


def build_provider() -> Optional[OIDCProvider]:
    """Provider from settings, or None when federated sign-in is disabled."""
    if not settings.OIDC_ENABLED:
        return None
    return OIDCProvider(
        OIDCConfig(
            issuer_url=settings.OIDC_ISSUER_URL,
            client_id=settings.OIDC_CLIENT_ID,
            client_secret=settings.OIDC_CLIENT_SECRET,
        )
    )
