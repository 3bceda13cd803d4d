"""
Fetch outcomes and upstream errors.

The fetcher never raises for an upstream problem; it returns one of
``Success``, ``Throttled`` or ``Failure`` and leaves the decision of what
to do with it to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


class WeatherCacheError(Exception):
    """Base exception for weathercache errors."""


class UpstreamError(WeatherCacheError):
    """Upstream request failed (non-2xx status, transport error, bad body)."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class ThrottleError(UpstreamError):
    """Upstream signalled rate limiting and retries did not help."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        attempts: int = 1,
        retry_after: float | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, url=url, status_code=429, cause=cause)
        self.attempts = attempts
        self.retry_after = retry_after


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class Success:
    """2xx response with its parsed JSON body."""

    body: Any
    status_code: int = 200
    attempts: int = 1


@dataclass(frozen=True)
class Throttled:
    """Rate limited on every attempt, or an error that reads like one."""

    error: ThrottleError

    @property
    def reason(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class Failure:
    """Any other upstream problem. Never served from stale cache."""

    error: UpstreamError


Outcome = Union[Success, Throttled, Failure]


THROTTLE_INDICATORS = ("429", "too many requests", "rate limit")


def looks_throttled(message: str) -> bool:
    """Check whether an error description reports rate limiting.

    Fallback for transports that surface throttling as a generic error
    instead of a status code.
    """
    text = message.lower()
    return any(indicator in text for indicator in THROTTLE_INDICATORS)
