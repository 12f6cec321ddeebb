"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
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


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Static type checkers treat BaseSettings fields as required constructor
    arguments, which is not how BaseSettings is populated.
    """

    return AppSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_upload_size_mb: int = Field(
        10,
        description="Maximum dog photo upload size in megabytes",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    trust_forwarded_for: bool = Field(
        True,
        description="Resolve the client IP from the first X-Forwarded-For hop",
    )

    generation_cooldown_hours: float = Field(
        3.0,
        description="Minimum time between two unpaid generations from one IP",
        gt=0,
    )
    generation_retention_hours: float = Field(
        24.0,
        description="Age after which per-IP generation entries are purged",
        gt=0,
    )
    cleanup_interval_seconds: int = Field(
        3600,
        description="How often limiter cleanup runs in the background",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable burst rate limiting on the generate endpoint",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of generate requests allowed per window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Burst rate limit window size in seconds",
        ge=1,
    )
    rate_limit_min_interval_seconds: int = Field(
        30,
        description="Minimum seconds between two generate requests (0 disables)",
        ge=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DurationSettings(BaseSettings):
    """Dialogue duration heuristic tunables."""

    words_per_minute: float = Field(
        140.0,
        description="Assumed speaking pace used to estimate dialogue length",
        gt=0,
    )
    buckets: str = Field(
        "4,6,8",
        description="Comma-separated permitted video lengths in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="DURATION_",
        case_sensitive=False,
    )

    @field_validator("buckets")
    @classmethod
    def _validate_buckets(cls, value: str) -> str:
        parse_buckets(value)
        return value

    @property
    def bucket_values(self) -> tuple[int, ...]:
        return parse_buckets(self.buckets)


def parse_buckets(raw: str) -> tuple[int, ...]:
    """Parse a comma-separated bucket list into sorted, unique integers.

    Raises:
        ValueError: If the list is empty or holds non-positive values.
    """
    values = sorted({int(part) for part in raw.split(",") if part.strip()})
    if not values:
        raise ValueError("at least one duration bucket is required")
    if values[0] <= 0:
        raise ValueError("duration buckets must be positive")
    return tuple(values)


class VideoSettings(BaseSettings):
    """Video generation provider configuration."""

    provider: str = Field(
        "veo",
        description="Video provider name",
    )
    model: str = Field(
        "veo-3.1-generate-preview",
        description="Video model name",
    )
    api_key: str | None = Field(
        None,
        description="API key for the video provider",
    )
    base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        description="Provider API root",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Request timeout in seconds",
    )
    generate_audio: bool = Field(
        True,
        description="Ask the model to generate the spoken audio track",
    )

    model_config = SettingsConfigDict(
        env_prefix="VIDEO_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after N bytes (0 disables)")
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
    app: AppSettings = Field(default_factory=_build_app_settings)
    duration: DurationSettings = Field(default_factory=DurationSettings)
    video: VideoSettings = Field(default_factory=VideoSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
