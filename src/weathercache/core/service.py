"""
Cache-aside forecast service.

Looks requests up in the cache store by fingerprint; on a miss it asks
the fetcher, stores successes, and on a throttled miss serves the last
stored response even if it has expired. Every other upstream failure
propagates.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from weathercache.core.cache import (
    CacheEntry,
    CacheStore,
    PendingItem,
    build_url,
    create_store,
    generate_cache_key,
)
from weathercache.core.config import AppConfig
from weathercache.core.fetch import (
    Failure,
    RetryingFetcher,
    Success,
    Throttled,
    WeatherCacheError,
)
from weathercache.core.logging import get_contextual_logger

FORECAST_ENDPOINT = "/forecast"

SOURCE_API = "api"
SOURCE_CACHE = "cache"


class FetchFailure(WeatherCacheError):
    """Forecast could not be served. ``cause`` holds the underlying error."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class FetchResult:
    """Forecast body plus where it came from and how fresh it is."""

    body: Any
    source: str
    is_stale: bool
    cached_at: int | None
    expires_in_seconds: int
    timestamp: int

    @property
    def from_cache(self) -> bool:
        return self.source == SOURCE_CACHE


class ForecastService:
    """Cache-aside coordinator in front of the forecast endpoint.

    ``source`` is derived from the entry age at whole-second resolution:
    an entry written and returned within the same second reports ``api``,
    anything older reports ``cache``. A response fetched in this call
    that straddles a second boundary is therefore reported as ``cache``.
    """

    def __init__(
        self,
        fetcher: RetryingFetcher,
        store: CacheStore,
        base_url: str,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.fetcher = fetcher
        self.store = store
        self.base_url = base_url
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        clock: Callable[[], float] = time.time,
        **fetcher_kwargs: Any,
    ) -> "ForecastService":
        """Wire a service from application configuration."""
        return cls(
            fetcher=RetryingFetcher(config.upstream, config.retry, **fetcher_kwargs),
            store=create_store(config.cache, clock=clock),
            base_url=config.upstream.base_url,
            ttl_seconds=config.cache.ttl_seconds,
            clock=clock,
        )

    def _now(self) -> int:
        return int(self._clock())

    async def fetch(self, params: Mapping[str, Any]) -> FetchResult:
        """Return the freshest available forecast for ``params``.

        Raises:
            FetchFailure: Upstream failed, or stayed throttled with no
                stored response to fall back to, or the store failed
        """
        url = build_url(self.base_url, FORECAST_ENDPOINT)
        key = generate_cache_key(url, params)
        log = get_contextual_logger("service", url=url, cache_key=key)

        async def compute(item: PendingItem) -> CacheEntry:
            item.expires_after(self.ttl_seconds)
            log.info("Cache miss - fetching from API")

            outcome = await self.fetcher.call(url, params)

            if isinstance(outcome, Success):
                return CacheEntry(payload=outcome.body, cached_at=self._now())

            if isinstance(outcome, Throttled):
                stale = await self.store.get_stale(key)
                if stale is None:
                    raise outcome.error
                item.discard()
                log.warning(
                    "Rate limit exceeded after retries - using stale cache",
                    extra={
                        "error": outcome.reason,
                        "stale_age_seconds": stale.age(self._now()),
                    },
                )
                return stale

            if isinstance(outcome, Failure):
                raise outcome.error

            raise TypeError(f"Unknown fetch outcome: {outcome!r}")

        try:
            entry = await self.store.get(key, compute)
            return self._describe(entry)
        except Exception as e:
            log.error("Error fetching data", extra={"error": str(e)})
            raise FetchFailure(f"Failed to fetch data: {e}", cause=e) from e

    def _describe(self, entry: CacheEntry) -> FetchResult:
        now = self._now()
        age = entry.age(now)
        from_cache = age > 0

        return FetchResult(
            body=entry.payload,
            source=SOURCE_CACHE if from_cache else SOURCE_API,
            is_stale=from_cache and age > self.ttl_seconds,
            cached_at=entry.cached_at,
            expires_in_seconds=max(0, self.ttl_seconds - age),
            timestamp=now,
        )

    async def close(self) -> None:
        """Close the HTTP client and the cache store."""
        try:
            await self.fetcher.close()
        finally:
            await self.store.close()

    async def __aenter__(self) -> "ForecastService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
