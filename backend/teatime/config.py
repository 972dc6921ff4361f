"""
Application settings.

Values come from the process environment and an optional ``.env`` file.
Connection strings live in ``CONNECTION_STRINGS`` (a JSON object keyed by
name); the application reads the ``DefaultConnection`` entry.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "DefaultConnection"


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "TeaTime"

    # "Development" enables the debug error page and skips HSTS
    ENVIRONMENT: str = "Production"
    LOG_LEVEL: str = "INFO"

    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 8000

    # Database
    CONNECTION_STRINGS: dict[str, str] = Field(
        default_factory=lambda: {DEFAULT_CONNECTION: "sqlite+aiosqlite:///./teatime.db"}
    )
    DB_ECHO_LOG: bool = False

    # Signing key for auth cookies, session cookies and account tokens
    SECRET_KEY: SecretStr = Field(default_factory=lambda: SecretStr(secrets.token_urlsafe(32)))

    # Cookie authentication
    AUTH_COOKIE_NAME: str = ".TeaTime.Identity.Application"
    AUTH_COOKIE_EXPIRE_MINUTES: int = 14 * 24 * 60
    LOGIN_PATH: str = "/Identity/Account/Login"
    LOGOUT_PATH: str = "/Identity/Account/Logout"
    ACCESS_DENIED_PATH: str = "/Identity/Account/AccessDenied"
    SESSION_COOKIE_NAME: str = ".TeaTime.Session"

    # Identity
    REQUIRE_CONFIRMED_ACCOUNT: bool = True
    TOKEN_LIFESPAN_MINUTES: int = 24 * 60

    # Pipeline
    ERROR_PATH: str = "/Customer/Home/Error"
    HTTPS_REDIRECTION: bool = True
    HSTS_MAX_AGE_DAYS: int = 30

    # Seed account
    ADMIN_EMAIL: str = "admin@teatimedemo.com"
    ADMIN_PASSWORD: SecretStr = SecretStr("Admin123*")
    ADMIN_NAME: str = "TeaTime Admin"

    # Outbound mail; when SMTP_HOST is unset messages are only logged
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: SecretStr | None = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "no-reply@teatimedemo.com"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the valid levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def get_connection_string(self, name: str = DEFAULT_CONNECTION) -> str:
        """
        Return the connection string registered under ``name``.

        Raises:
            ConfigurationError: if the entry is missing or blank
        """
        value = self.CONNECTION_STRINGS.get(name)
        if not value or not value.strip():
            raise ConfigurationError(f"Connection string '{name}' not found.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
