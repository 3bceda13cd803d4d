"""
Cache store base classes and data structures.

Defines the store contract used by the forecast service:

- ``get(key, compute)``: return the live entry or compute it, with at
  most one compute in flight per key
- ``get_stale(key)``: return whatever is physically stored, expired or not
- ``put(key, entry, ttl)``: store an entry with a native expiry
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable

from weathercache.core.fetch.base import WeatherCacheError


class CacheStoreError(WeatherCacheError):
    """A cache store operation itself failed."""

    def __init__(self, message: str, key: str | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.key = key
        self.cause = cause


@dataclass(frozen=True)
class CacheEntry:
    """A successful upstream response and the time it was fetched."""

    payload: Any
    cached_at: int

    def age(self, now: int) -> int:
        return now - self.cached_at


@dataclass(frozen=True)
class StoredItem:
    """An entry as physically held by a store, with its native expiry."""

    entry: CacheEntry
    expires_at: float

    def expired(self, now: float) -> bool:
        return int(now) > self.expires_at


@dataclass
class PendingItem:
    """Handle passed to compute functions on a cache miss.

    The compute function may change the expiry, or call ``discard`` to
    return its value to the caller without storing it.
    """

    key: str
    ttl: int
    save: bool = True

    def expires_after(self, seconds: int) -> None:
        self.ttl = seconds

    def discard(self) -> None:
        self.save = False


ComputeFn = Callable[[PendingItem], Awaitable[CacheEntry]]


@dataclass
class _LockSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class KeyedLocks:
    """Per-key asyncio locks, dropped once nobody holds or awaits them."""

    def __init__(self) -> None:
        self._slots: dict[str, _LockSlot] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _LockSlot()
        slot.holders += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.holders -= 1
            if slot.holders == 0:
                del self._slots[key]

    def __len__(self) -> int:
        return len(self._slots)


class CacheStore(ABC):
    """Abstract base class for cache stores.

    Subclasses implement raw ``_load``/``_save``; the base class provides
    expiry handling, per-key single-flight and error wrapping.
    """

    def __init__(
        self,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.default_ttl = default_ttl
        self.clock = clock
        self._locks = KeyedLocks()

    @property
    @abstractmethod
    def name(self) -> str:
        """Store identifier."""

    @abstractmethod
    async def _load(self, key: str) -> StoredItem | None:
        """Return the physically stored item, ignoring expiry."""

    @abstractmethod
    async def _save(self, key: str, item: StoredItem) -> None:
        """Persist an item, replacing any previous one."""

    async def _read(self, key: str) -> StoredItem | None:
        try:
            return await self._load(key)
        except CacheStoreError:
            raise
        except Exception as e:
            raise CacheStoreError(f"{self.name} store read failed: {e}", key=key, cause=e) from e

    async def get(self, key: str, compute: ComputeFn) -> CacheEntry:
        """Return the live entry for ``key``, computing it on a miss.

        Concurrent misses on the same key are serialized: the first caller
        computes, the rest wait and then read what it stored. Exceptions
        from ``compute`` propagate unchanged and nothing is stored.
        """
        item = await self._read(key)
        if item is not None and not item.expired(self.clock()):
            return item.entry

        async with self._locks.hold(key):
            item = await self._read(key)
            if item is not None and not item.expired(self.clock()):
                return item.entry

            pending = PendingItem(key=key, ttl=self.default_ttl)
            entry = await compute(pending)
            if pending.save:
                await self.put(key, entry, pending.ttl)
            return entry

    async def get_stale(self, key: str) -> CacheEntry | None:
        """Return the stored entry for ``key`` even if it has expired."""
        item = await self._read(key)
        return item.entry if item is not None else None

    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        """Store ``entry`` to expire ``ttl`` seconds after it was fetched."""
        ttl = self.default_ttl if ttl is None else ttl
        item = StoredItem(entry=entry, expires_at=entry.cached_at + ttl)
        try:
            await self._save(key, item)
        except CacheStoreError:
            raise
        except Exception as e:
            raise CacheStoreError(f"{self.name} store write failed: {e}", key=key, cause=e) from e

    async def close(self) -> None:
        """Release store resources."""

    async def __aenter__(self) -> "CacheStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
