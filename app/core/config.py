"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
- Every concern has its own env prefix (APP_, AUTH_, DB_, EMAIL_,
  OPENLIBRARY_, LOG_)
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_auth_settings() -> "AuthSettings":
    """Build auth settings from environment (see _build_app_settings)."""

    return AuthSettings()  # type: ignore[call-arg]


def _build_database_settings() -> "DatabaseSettings":
    return DatabaseSettings()  # type: ignore[call-arg]


def _build_email_settings() -> "EmailSettings":
    return EmailSettings()  # type: ignore[call-arg]


def _build_openlibrary_settings() -> "OpenLibrarySettings":
    return OpenLibrarySettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    cors_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )
    expose_reset_token: bool = Field(
        False,
        description="Echo password reset tokens in API responses (development only)",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable global rate limiting per client IP",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per client IP)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        900,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class AuthSettings(BaseSettings):
    """JWT, password hashing and account token configuration."""

    jwt_secret: str = Field(
        "change-me-in-production",
        description="Secret used to sign access tokens",
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    jwt_expires_hours: int = Field(
        24,
        description="Access token lifetime in hours",
        ge=1,
    )
    bcrypt_rounds: int = Field(
        10,
        description="bcrypt cost factor",
        ge=4,
        le=31,
    )
    password_min_length: int = Field(
        6,
        description="Minimum accepted password length",
        ge=1,
    )
    verification_token_hours: int = Field(
        24,
        description="Email verification token lifetime in hours",
        ge=1,
    )
    reset_token_expiry_seconds: int = Field(
        3600,
        description="Password reset token lifetime in seconds",
        ge=60,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """SQLite storage configuration."""

    path: str = Field(
        "db/library.db",
        description="SQLite database file path (relative paths resolve from the project root)",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )

    @property
    def resolved_path(self) -> Path:
        path = Path(self.path)
        if self.path == ":memory:" or path.is_absolute():
            return path
        return PROJECT_ROOT / path


class EmailSettings(BaseSettings):
    """Outbound SMTP configuration."""

    enabled: bool = Field(
        True,
        description="Send emails over SMTP; when false messages are only logged",
    )
    host: str = Field("localhost", description="SMTP host")
    port: int = Field(1025, description="SMTP port")
    use_ssl: bool = Field(False, description="Connect with implicit TLS (SMTPS)")
    use_starttls: bool = Field(False, description="Upgrade the connection with STARTTLS")
    user: str | None = Field(None, description="SMTP username")
    password: str | None = Field(None, description="SMTP password")
    from_address: str = Field(
        "library@example.com",
        description="Sender address for outgoing emails",
    )
    frontend_url: str = Field(
        "http://localhost:5173",
        description="Base URL of the web client used in email links",
    )
    timeout_seconds: float = Field(10.0, description="SMTP connection timeout")

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
    )


class OpenLibrarySettings(BaseSettings):
    """OpenLibrary client configuration."""

    base_url: str = Field(
        "https://openlibrary.org",
        description="OpenLibrary API base URL",
    )
    covers_url: str = Field(
        "https://covers.openlibrary.org",
        description="OpenLibrary covers base URL",
    )
    user_agent: str = Field(
        "LibraryAPI/1.0 (library@example.com)",
        description="User-Agent sent with every OpenLibrary request",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
    )
    rate_limit_requests: int = Field(
        5,
        description="Maximum outbound requests per window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Outbound rate limit window size in seconds",
        ge=1,
    )
    cache_ttl_seconds: int = Field(
        3600,
        description="How long successful responses are reused",
        ge=0,
    )
    cache_max_entries: int = Field(
        256,
        description="Maximum number of cached responses",
        ge=1,
    )
    search_limit: int = Field(
        20,
        description="Default number of results for title/author searches",
        ge=1,
        le=100,
    )

    model_config = SettingsConfigDict(
        env_prefix="OPENLIBRARY_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    database: DatabaseSettings = Field(default_factory=_build_database_settings)
    email: EmailSettings = Field(default_factory=_build_email_settings)
    openlibrary: OpenLibrarySettings = Field(default_factory=_build_openlibrary_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
