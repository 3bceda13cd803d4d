"""Cache stores and cache key derivation."""

from __future__ import annotations

import time
from typing import Callable

from weathercache.core.config import CacheBackendType, CacheConfig

from .base import CacheEntry, CacheStore, CacheStoreError, KeyedLocks, PendingItem, StoredItem
from .keys import CACHE_KEY_PREFIX, build_url, generate_cache_key
from .memory import MemoryCacheStore
from .sql import SqlCacheStore


def create_store(config: CacheConfig, clock: Callable[[], float] = time.time) -> CacheStore:
    """Build the cache store selected by configuration."""
    if config.backend == CacheBackendType.SQL:
        return SqlCacheStore.from_url(
            config.database_url,
            default_ttl=config.ttl_seconds,
            clock=clock,
            echo=config.echo_sql,
        )
    return MemoryCacheStore(
        default_ttl=config.ttl_seconds,
        max_entries=config.max_entries,
        clock=clock,
    )


__all__ = [
    "CACHE_KEY_PREFIX",
    "CacheEntry",
    "CacheStore",
    "CacheStoreError",
    "KeyedLocks",
    "MemoryCacheStore",
    "PendingItem",
    "SqlCacheStore",
    "StoredItem",
    "build_url",
    "create_store",
    "generate_cache_key",
]
