"""
Retry utilities with tenacity.

Builds the throttle retry loop: retry only while the upstream answers
with the throttle status, waiting ``base * multiplier**(k-1)`` seconds
(optionally jittered) before retry ``k``.
"""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from weathercache.core.logging import get_logger

if TYPE_CHECKING:
    import httpx

    from weathercache.core.config import RetryConfig

logger = get_logger("fetch.retries")


class wait_exponential_jittered(wait_base):
    """Exponential backoff with symmetric relative jitter.

    The delay before retry ``k`` (k >= 1) is ``initial * multiplier**(k-1)``,
    scaled by a random factor in ``[1 - jitter, 1 + jitter]``.
    """

    def __init__(
        self,
        initial: float = 1.0,
        multiplier: float = 2.0,
        jitter: float = 0.0,
        rng: Callable[[], float] = random.random,
    ):
        self.initial = initial
        self.multiplier = multiplier
        self.jitter = jitter
        self.rng = rng

    def base_delay(self, retry_number: int) -> float:
        return self.initial * self.multiplier ** (retry_number - 1)

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.base_delay(retry_state.attempt_number)
        if self.jitter:
            delay *= 1 + self.jitter * (2 * self.rng() - 1)
        return max(0.0, delay)


def wait_strategy_for(config: "RetryConfig") -> wait_exponential_jittered:
    """Build the backoff strategy described by a RetryConfig."""
    return wait_exponential_jittered(
        initial=config.base_delay_ms / 1000.0,
        multiplier=config.multiplier,
        jitter=config.jitter_factor if config.jitter else 0.0,
    )


def _log_throttle_retry(retry_state: RetryCallState) -> None:
    response = retry_state.outcome.result() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    url = str(response.request.url) if response is not None else None
    logger.warning(
        "Upstream throttled (attempt %d) - retrying in %.2fs",
        retry_state.attempt_number,
        delay,
        extra={
            "url": url,
            "status_code": getattr(response, "status_code", None),
            "attempt": retry_state.attempt_number,
            "delay_seconds": round(delay, 3),
        },
    )


def _return_last_response(retry_state: RetryCallState) -> Any:
    # Retries exhausted: hand back the final throttled response
    return retry_state.outcome.result()


def throttle_retrying(
    config: "RetryConfig",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncRetrying:
    """Build an AsyncRetrying that re-sends while the response is throttled.

    Exceptions raised by the wrapped call are not retried; they propagate
    on the first attempt.

    Args:
        config: Retry configuration
        sleep: Awaitable sleep used between attempts

    Returns:
        AsyncRetrying instance, callable with the send coroutine function
    """

    def is_throttled(response: "httpx.Response") -> bool:
        return response.status_code == config.throttle_status

    return AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_strategy_for(config),
        retry=retry_if_result(is_throttled),
        before_sleep=_log_throttle_retry,
        retry_error_callback=_return_last_response,
        sleep=sleep,
        reraise=True,
    )


def retry_after_seconds(response: "httpx.Response") -> float | None:
    """Parse a numeric Retry-After header, if any."""
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After: %r", value)
        return None
