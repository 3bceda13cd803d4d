"""Configuration loading and validation."""

from .models import (
    AppConfig,
    CacheBackendType,
    CacheConfig,
    LoggingConfig,
    RetryConfig,
    UpstreamConfig,
)
from .loader import ConfigError, load_app_config, write_default_config

__all__ = [
    # Enums
    "CacheBackendType",
    # Config models
    "AppConfig",
    "CacheConfig",
    "LoggingConfig",
    "RetryConfig",
    "UpstreamConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "write_default_config",
]
