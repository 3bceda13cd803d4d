"""
Pydantic configuration models for weathercache.

These models provide immutable, validated configuration for:
- The upstream forecast API
- Throttle retry and backoff behaviour
- The cache store and freshness window
- Logging
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrozenModel(BaseModel):
    """Base for configuration sections; instances cannot be mutated."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Enums
# =============================================================================


class CacheBackendType(str, Enum):
    """Supported cache store backends."""

    MEMORY = "memory"
    SQL = "sql"


# =============================================================================
# Upstream Configuration
# =============================================================================


class UpstreamConfig(FrozenModel):
    """Upstream forecast API settings."""

    base_url: str = Field(
        default="https://api.open-meteo.com/v1",
        description="Base URL the forecast endpoint is appended to",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Per-attempt request timeout in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def base_url_has_scheme(cls, v: str) -> str:
        """Require an absolute http(s) base URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v


# =============================================================================
# Retry Configuration
# =============================================================================


class RetryConfig(FrozenModel):
    """Throttle retry and exponential backoff settings."""

    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Additional attempts after a throttled response",
    )
    base_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay before the first retry in milliseconds",
    )
    multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Exponential backoff multiplier",
    )
    jitter: bool = Field(
        default=True,
        description="Randomize each delay by +/- jitter_factor",
    )
    jitter_factor: float = Field(
        default=0.1,
        ge=0.0,
        lt=1.0,
        description="Relative jitter applied to each delay",
    )
    throttle_status: int = Field(
        default=429,
        ge=400,
        le=599,
        description="HTTP status that signals rate limiting",
    )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


# =============================================================================
# Cache Configuration
# =============================================================================


class CacheConfig(FrozenModel):
    """Cache store and freshness window settings."""

    backend: CacheBackendType = Field(
        default=CacheBackendType.MEMORY,
        description="Cache store implementation",
    )
    ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="Freshness window; entries older than this are stale",
    )
    max_entries: int = Field(
        default=1024,
        ge=1,
        description="Memory store capacity before oldest entries are evicted",
    )
    database_url: str = Field(
        default="sqlite:///data/weathercache.db",
        description="SQLAlchemy database URL for the sql backend",
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements (debugging)",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(FrozenModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(FrozenModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def with_overrides(self, **sections: Any) -> "AppConfig":
        """Return a copy with whole sections replaced."""
        return self.model_copy(update=sections)
