"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationAppError


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


PRODUCTION_ENV = "production"

# Placeholder shipped in sample env files; never acceptable as a real secret.
PLACEHOLDER_JWT_SECRET = "replace-in-production"
MIN_JWT_SECRET_LENGTH = 32
DEV_JWT_SECRET = "relaydocs-dev-secret-do-not-use-in-production"


def _build_auth_controls_settings() -> "AuthControlsSettings":
    """Build auth control settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat fields as constructor
    arguments, which is not how BaseSettings is intended to be used.
    """

    return AuthControlsSettings()  # type: ignore[call-arg]


def _build_security_settings() -> "SecuritySettings":
    return SecuritySettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AuthControlsSettings(BaseSettings):
    """Rate limiting and account lockout policy for authentication endpoints."""

    rate_limit_max: int = Field(
        20,
        description="Maximum requests per window per client address on auth endpoints",
        ge=1,
    )
    rate_limit_window_ms: int = Field(
        60000,
        description="Rate limit window size in milliseconds",
        ge=1,
    )
    lockout_threshold: int = Field(
        5,
        description="Consecutive failed logins that lock a username/address pair",
        ge=1,
    )
    lockout_window_ms: int = Field(
        900000,
        description="Window in which failed logins are counted, in milliseconds",
        ge=1,
    )
    lockout_duration_ms: int = Field(
        900000,
        description="How long a username/address pair stays locked, in milliseconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class SecuritySettings(BaseSettings):
    """Token signing and shared counter store configuration.

    Read without a prefix (JWT_SECRET, ALLOW_DEV_TOKENS, REDIS_URL) so the
    gateway shares variable names with the rest of the deployment.
    """

    jwt_secret: str | None = Field(
        None,
        description="Shared HS256 signing secret (>= 32 chars required in production)",
    )
    allow_dev_tokens: bool = Field(
        True,
        description="Accept unsigned 'dev-token-<user>' bearer tokens outside production",
    )
    redis_url: str | None = Field(
        None,
        description="Redis URL for shared rate limit/lockout counters; unset disables Redis",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    document_service_url: str = Field(
        "http://localhost:8081",
        description="Base URL of the downstream document service",
    )
    document_service_timeout_seconds: float = Field(
        10.0,
        description="Timeout for calls to the document service",
        gt=0,
    )
    web_origin: str = Field(
        "http://localhost:5173",
        description="Browser origin allowed by CORS",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("info", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate log file at this size (0 disables rotation)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    auth: AuthControlsSettings = Field(default_factory=_build_auth_controls_settings)
    security: SecuritySettings = Field(default_factory=_build_security_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == PRODUCTION_ENV


def resolve_jwt_secret(cfg: Settings) -> str:
    """Return the signing secret, refusing weak secrets in production.

    Args:
        cfg: Resolved settings.

    Returns:
        The configured secret when strong enough, otherwise the fixed
        development secret (non-production only).

    Raises:
        ConfigurationAppError: In production when the secret is missing,
            shorter than 32 characters or equal to the placeholder.
    """
    secret = cfg.security.jwt_secret
    if (
        secret is not None
        and len(secret) >= MIN_JWT_SECRET_LENGTH
        and secret != PLACEHOLDER_JWT_SECRET
    ):
        return secret

    if cfg.is_production:
        raise ConfigurationAppError(
            code="weak_jwt_secret",
            message=(
                f"JWT_SECRET must be set to a strong value (>= {MIN_JWT_SECRET_LENGTH} chars) "
                "when APP_ENV=production."
            ),
        )

    return DEV_JWT_SECRET


def dev_tokens_allowed(cfg: Settings) -> bool:
    """Development tokens are never accepted in production."""
    if cfg.is_production:
        return False
    return cfg.security.allow_dev_tokens


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
