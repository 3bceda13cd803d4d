"""
Retrying upstream fetcher using httpx.

Sends one logical GET request, re-sending on the throttle status with
exponential backoff, and classifies the terminal result as an Outcome.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping

import httpx

from weathercache.core.config import RetryConfig, UpstreamConfig
from weathercache.core.logging import get_logger

from .base import (
    Failure,
    Outcome,
    Success,
    ThrottleError,
    Throttled,
    UpstreamError,
    looks_throttled,
)
from .retries import retry_after_seconds, throttle_retrying

logger = get_logger("fetch")

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "weathercache/0.1",
}


class RetryingFetcher:
    """Upstream fetcher with throttle retry and outcome classification.

    Features:
    - Persistent connection pooling
    - Bounded per-attempt timeout
    - Retry on the throttle status only, with jittered exponential backoff
    - Never raises for upstream problems; returns Success/Throttled/Failure
    """

    def __init__(
        self,
        upstream: UpstreamConfig | None = None,
        retry: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the fetcher.

        Args:
            upstream: Upstream settings (timeout)
            retry: Throttle retry settings
            client: Pre-built client; the fetcher does not close it
            sleep: Awaitable used for backoff sleeps
        """
        self.upstream = upstream or UpstreamConfig()
        self.retry = retry or RetryConfig()
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.upstream.timeout_seconds),
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def call(self, url: str, params: Mapping[str, Any]) -> Outcome:
        """GET ``url`` with ``params`` as the query string.

        Args:
            url: Absolute upstream URL
            params: Query parameters, passed through unvalidated

        Returns:
            Success with the parsed body, Throttled, or Failure
        """
        client = await self._ensure_client()
        attempts = 0

        async def send() -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return await client.get(url, params=dict(params))

        try:
            response = await throttle_retrying(self.retry, sleep=self._sleep)(send)
        except httpx.HTTPError as e:
            return self._classify_error(url, f"{type(e).__name__}: {e}", e, attempts)

        return self._classify_response(url, response, attempts)

    def _classify_response(self, url: str, response: httpx.Response, attempts: int) -> Outcome:
        status = response.status_code

        if status == self.retry.throttle_status:
            error = ThrottleError(
                f"Rate limit exceeded ({status}) after {attempts} attempts",
                url=url,
                attempts=attempts,
                retry_after=retry_after_seconds(response),
            )
            logger.error(
                "Rate limit exceeded after all retries",
                extra={"url": url, "status_code": status, "attempt": attempts},
            )
            return Throttled(error)

        if 200 <= status < 300:
            try:
                body = response.json()
            except ValueError as e:
                return self._classify_error(url, f"Malformed response body: {e}", e, attempts, status)

            logger.info(
                "API call successful",
                extra={"url": url, "status_code": status, "attempt": attempts},
            )
            return Success(body=body, status_code=status, attempts=attempts)

        return self._classify_error(url, f"API returned status code: {status}", None, attempts, status)

    def _classify_error(
        self,
        url: str,
        message: str,
        cause: BaseException | None,
        attempts: int,
        status_code: int | None = None,
    ) -> Outcome:
        if looks_throttled(message):
            logger.error(
                "Rate limit exceeded after all retries",
                extra={"url": url, "status_code": status_code, "error": message},
            )
            return Throttled(
                ThrottleError(f"Rate limit exceeded: {message}", url=url, attempts=attempts, cause=cause)
            )

        logger.error(
            "API call failed",
            extra={"url": url, "status_code": status_code, "error": message},
        )
        return Failure(UpstreamError(message, url=url, status_code=status_code, cause=cause))

    async def close(self) -> None:
        """Close the HTTP client if the fetcher created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
