# countervalues/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables (prefix COUNTERVALUES_)
with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- API_BASE_URL: Countervalues REST API root used by the HTTP provider
- MAX_CONCURRENCY: Historical fetches allowed in flight per pass
- *_DATAPOINT_LIMIT_DAYS: Retention horizon per granularity

Environment-specific behavior:
- production: API_BASE_URL must use https
- development/test: any http(s) URL is accepted

Configuration is validated on import. Invalid configuration raises a
ValueError with a descriptive message.

Usage:
    from countervalues.config import settings

    service = CountervaluesSyncService(
        provider, currencies, concurrency=settings.max_concurrency
    )
"""
from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from countervalues.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_DAILY_DATAPOINT_LIMIT_DAYS,
    DEFAULT_HOURLY_DATAPOINT_LIMIT_DAYS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MAX_WAIT,
    DEFAULT_RETRY_MIN_WAIT,
)

# Single .env at the repository root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables:
        - COUNTERVALUES_ENVIRONMENT: Runtime environment (default: development)
        - COUNTERVALUES_LOG_LEVEL: Logging level (default: "INFO")
        - COUNTERVALUES_LOG_FORMAT: "text" or "json" (default: "text")

    HTTP provider:
        - COUNTERVALUES_API_BASE_URL
        - COUNTERVALUES_API_TIMEOUT_SECONDS (default: 30)
        - COUNTERVALUES_MAX_RETRY_ATTEMPTS (default: 3)
        - COUNTERVALUES_RETRY_MIN_WAIT / COUNTERVALUES_RETRY_MAX_WAIT

    Synchronization:
        - COUNTERVALUES_MAX_CONCURRENCY (default: 10)
        - COUNTERVALUES_DAILY_DATAPOINT_LIMIT_DAYS (default: 3650)
        - COUNTERVALUES_HOURLY_DATAPOINT_LIMIT_DAYS (default: 7)
        - COUNTERVALUES_AUTOFILL_GAPS (default: True)
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # HTTP PROVIDER
    # =========================================================================
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        description="Root URL of the countervalues REST API"
    )
    api_timeout_seconds: float = Field(
        default=DEFAULT_API_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Per-request timeout in seconds"
    )
    max_retry_attempts: int = Field(
        default=DEFAULT_MAX_RETRY_ATTEMPTS,
        ge=1,
        le=10,
        description="Attempts per request on transport errors"
    )
    retry_min_wait: int = Field(default=DEFAULT_RETRY_MIN_WAIT, ge=0)
    retry_max_wait: int = Field(default=DEFAULT_RETRY_MAX_WAIT, ge=0)

    # =========================================================================
    # SYNCHRONIZATION
    # =========================================================================
    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY,
        ge=1,
        le=50,
        description="Historical fetches allowed in flight per pass"
    )
    daily_datapoint_limit_days: int = Field(
        default=DEFAULT_DAILY_DATAPOINT_LIMIT_DAYS,
        ge=1,
        description="Oldest daily bucket that may be requested, in days"
    )
    hourly_datapoint_limit_days: int = Field(
        default=DEFAULT_HOURLY_DATAPOINT_LIMIT_DAYS,
        ge=1,
        description="Oldest hourly bucket that may be requested, in days"
    )
    autofill_gaps: bool = Field(
        default=True,
        description="Forward-fill missing daily buckets when building caches"
    )

    model_config = SettingsConfigDict(
        env_prefix="COUNTERVALUES_",
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_provider_config(self) -> "Settings":
        """
        Validate provider configuration based on environment.

        Rules:
        - api_base_url must be http(s)
        - production: api_base_url must be https
        - retry_min_wait cannot exceed retry_max_wait
        """
        url_lower = self.api_base_url.lower()
        if not url_lower.startswith(("http://", "https://")):
            raise ValueError(
                f"API_BASE_URL must start with http:// or https://, got: {self.api_base_url}"
            )
        if self.environment == "production" and not url_lower.startswith("https://"):
            raise ValueError(
                "Production environment requires an https API_BASE_URL, "
                f"got: {self.api_base_url}"
            )
        if self.retry_min_wait > self.retry_max_wait:
            raise ValueError(
                f"RETRY_MIN_WAIT ({self.retry_min_wait}) cannot exceed "
                f"RETRY_MAX_WAIT ({self.retry_max_wait})"
            )

        # Strip trailing slash so URL joins stay predictable
        object.__setattr__(self, "api_base_url", self.api_base_url.rstrip("/"))
        return self

    @property
    def datapoint_limits(self) -> dict[str, timedelta]:
        """Retention horizon per granularity, as consumed by the scheduler."""
        return {
            "daily": timedelta(days=self.daily_datapoint_limit_days),
            "hourly": timedelta(days=self.hourly_datapoint_limit_days),
        }


# Create single instance
settings = Settings()
