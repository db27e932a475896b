"""
Application configuration.

Loads settings from environment variables with sensible defaults.
Signing secrets have no defaults: a process without them refuses to start.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from classroom.errors import ConfigurationError


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
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    frontend_url: str = "http://localhost:5173"

    # ==========================================================================
    # Tokens
    # ==========================================================================

    # One secret per token kind, so a leaked access secret cannot mint
    # refresh or reset tokens.
    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_reset_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    reset_token_expire_minutes: int = 5

    # ==========================================================================
    # Passwords
    # ==========================================================================

    password_min_length: int = 6
    password_max_length: int = 20
    password_hash_iterations: int = 310_000

    # ==========================================================================
    # Session cookies
    # ==========================================================================

    access_cookie_name: str = "access_token"
    refresh_cookie_name: str = "refresh_token"
    cookie_secure: bool = True
    cookie_samesite: str = "none"
    cookie_domain: str | None = None

    # ==========================================================================
    # External collaborators
    # ==========================================================================

    store_timeout_seconds: float = 5.0
    notifier_timeout_seconds: float = 10.0

    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_ses_from_email: str = ""

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
    def use_aws(self) -> bool:
        """Whether AWS services should be used."""
        return bool(self.aws_access_key_id and self.aws_secret_access_key)

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.refresh_token_expire_days * 24 * 60 * 60

    @property
    def reset_token_ttl_seconds(self) -> int:
        return self.reset_token_expire_minutes * 60

    def validate_security(self) -> None:
        """
        Refuse to run with missing or shared signing secrets.

        Raises:
            ConfigurationError: a secret is empty or reused across token kinds
        """
        secrets_by_kind = {
            "JWT_ACCESS_SECRET": self.jwt_access_secret,
            "JWT_REFRESH_SECRET": self.jwt_refresh_secret,
            "JWT_RESET_SECRET": self.jwt_reset_secret,
        }
        missing = [name for name, value in secrets_by_kind.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing signing secrets: {', '.join(missing)}")

        if len(set(secrets_by_kind.values())) != len(secrets_by_kind):
            raise ConfigurationError("Each token kind must use a distinct signing secret")

        if self.password_min_length > self.password_max_length:
            raise ConfigurationError("password_min_length exceeds password_max_length")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Set the root log level and format once at startup."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
