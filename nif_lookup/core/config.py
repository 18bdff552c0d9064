"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
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


class AppSettings(BaseSettings):
    """HTTP front end configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        8080,
        validation_alias=AliasChoices("PORT", "APP_PORT"),
        description="Port the HTTP server listens on",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class SourceSettings(BaseSettings):
    """External lookup sources configuration.

    A cool-down of 0 disables throttling for that source; any positive value
    wraps the source in a RateLimitedLane with that spacing between calls.
    """

    timeout_seconds: float = Field(
        20.0,
        description="Timeout applied to every outbound source request",
        gt=0,
    )
    racius_cooldown_seconds: float = Field(
        60.0,
        description="Minimum spacing between Racius lookups",
        ge=0,
    )
    portugalio_cooldown_seconds: float = Field(
        60.0,
        description="Minimum spacing between Portugalio lookups",
        ge=0,
    )
    europa_cooldown_seconds: float = Field(
        0.0,
        description="Minimum spacing between VIES lookups (0 = unthrottled)",
        ge=0,
    )
    vies_requester_member_state: str = Field(
        "PT",
        description="Member state code sent as requesterMemberStateCode to VIES",
    )
    vies_requester_number: str = Field(
        "516969250",
        description="VAT number sent as requesterNumber to VIES",
    )

    model_config = SettingsConfigDict(
        env_prefix="SOURCE_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Persistent record cache configuration."""

    directory: str = Field(
        "nif",
        description="Root directory of the sharded record cache",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files kept")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
