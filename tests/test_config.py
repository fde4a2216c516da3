"""Settings validation at load time."""

import pytest
from pydantic import ValidationError

from teampulse.core.config import Settings


def test_weak_bcrypt_cost_needs_testing_flag():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, TESTING=False, BCRYPT_ROUNDS=4)
    assert Settings(_env_file=None, TESTING=True, BCRYPT_ROUNDS=4).BCRYPT_ROUNDS == 4


def test_oidc_enabled_requires_issuer_details():
    with pytest.raises(ValidationError, match="OIDC_CLIENT_SECRET"):
        Settings(
            _env_file=None,
            OIDC_ENABLED=True,
            OIDC_ISSUER_URL="https://issuer.example.com",
            OIDC_CLIENT_ID="client",
            OIDC_ALLOWED_DOMAINS=["app.example.com"],
        )


def test_oidc_enabled_with_full_config():
    settings = Settings(
        _env_file=None,
        OIDC_ENABLED=True,
        OIDC_ISSUER_URL="https://issuer.example.com",
        OIDC_CLIENT_ID="client",
        OIDC_CLIENT_SECRET="secret",
        OIDC_ALLOWED_DOMAINS=["app.example.com"],
    )
    assert settings.OIDC_DISCOVERY_TTL_SECONDS == 3600
