"""Application configuration from environment variables."""

from pydantic import model_validator
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "TeamPulse"
    DEBUG: bool = False
    TESTING: bool = False
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Database. When unset the in-memory store is used (development only).
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10

    # Sessions
    SESSION_SECRET: str = "dev-session-secret-change-in-production"
    SESSION_TTL_SECONDS: int = 7 * 24 * 60 * 60
    SESSION_COOKIE_NAME: str = "tp_sid"
    SESSION_COOKIE_SECURE: bool = False

    # Auth
    BCRYPT_ROUNDS: int = 12
    AUTH_RATE_LIMIT: str = "10/minute"

    # OpenID Connect
    OIDC_ENABLED: bool = False
    OIDC_ISSUER_URL: Optional[str] = None
    OIDC_CLIENT_ID: Optional[str] = None
    OIDC_CLIENT_SECRET: Optional[str] = None
    OIDC_ALLOWED_DOMAINS: list[str] = []
    OIDC_DISCOVERY_TTL_SECONDS: int = 3600

    # Admin seed
    ADMIN_EMAIL: str = "admin@teampulse.local"
    ADMIN_PASSWORD: str = "changeme123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @model_validator(mode="after")
    def check_bcrypt_rounds(self) -> "Settings":
        # Low cost only for the test-suite
        if self.BCRYPT_ROUNDS < 12 and not self.TESTING:
            raise ValueError("BCRYPT_ROUNDS must be at least 12")
        return self

    @model_validator(mode="after")
    def check_oidc(self) -> "Settings":
        if not self.OIDC_ENABLED:
            return self
        missing = [
            name
            for name in ("OIDC_ISSUER_URL", "OIDC_CLIENT_ID", "OIDC_CLIENT_SECRET")
            if not getattr(self, name)
        ]
        if not self.OIDC_ALLOWED_DOMAINS:
            missing.append("OIDC_ALLOWED_DOMAINS")
        if missing:
            raise ValueError(
                f"OIDC_ENABLED is set but {', '.join(missing)} not provided"
            )
        return self


settings = Settings()
