"""Fetch utilities - throttle retries and outcome classification."""

from .base import (
    Failure,
    Outcome,
    Success,
    ThrottleError,
    Throttled,
    UpstreamError,
    WeatherCacheError,
    looks_throttled,
)
from .fetcher import RetryingFetcher
from .retries import throttle_retrying, wait_exponential_jittered

__all__ = [
    "Failure",
    "Outcome",
    "RetryingFetcher",
    "Success",
    "ThrottleError",
    "Throttled",
    "UpstreamError",
    "WeatherCacheError",
    "looks_throttled",
    "throttle_retrying",
    "wait_exponential_jittered",
]
