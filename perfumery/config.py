"""
Application configuration.

Loads settings from environment variables (and an optional .env file).
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 5000
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # ==========================================================================
    # Authentication
    # ==========================================================================

    # Must be set: an empty value aborts startup (see TokenService)
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30

    # bcrypt work factor
    bcrypt_rounds: int = 10

    # ==========================================================================
    # OAuth (Google)
    # ==========================================================================

    google_oauth_client_id: str = ""
    google_oauth_client_secret: str = ""
    google_oauth_redirect_uri: str = "http://localhost:5000/auth/google/callback"
    oauth_state_ttl_seconds: int = 600

    # Profile values for members first seen through OAuth. The provider
    # does not supply them, so they are placeholders pending product input.
    oauth_default_age_years: int = 25
    oauth_default_gender: bool = True

    # ==========================================================================
    # Administrator bootstrap
    # ==========================================================================

    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(days=self.jwt_expire_days)

    @property
    def bootstrap_admin(self) -> bool:
        """Whether an administrator account should be seeded at startup."""
        return bool(self.admin_email and self.admin_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
