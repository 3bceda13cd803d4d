"""
SQL-backed cache store.

Shares cached responses between processes through a database table.
Single-flight is per process: two processes can still miss the same key
at the same time.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from weathercache.persistence.db import create_engine_for, init_db, session_factory
from weathercache.persistence.models import CacheRecord

from .base import CacheEntry, CacheStore, CacheStoreError, StoredItem


class SqlCacheStore(CacheStore):
    """Cache store on a SQLAlchemy async engine.

    With ``auto_create`` the cache table is created on first use, so a
    fresh database works without running ``cache init``.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.time,
        owns_engine: bool = False,
        auto_create: bool = True,
    ):
        super().__init__(default_ttl=default_ttl, clock=clock)
        self.engine = engine
        self._sessions = session_factory(engine)
        self._owns_engine = owns_engine
        self._schema_ready = not auto_create
        self._schema_lock = asyncio.Lock()

    @classmethod
    def from_url(
        cls,
        url: str,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.time,
        echo: bool = False,
        auto_create: bool = True,
    ) -> "SqlCacheStore":
        """Create a store that owns a new engine for ``url``."""
        return cls(
            create_engine_for(url, echo=echo),
            default_ttl=default_ttl,
            clock=clock,
            owns_engine=True,
            auto_create=auto_create,
        )

    @property
    def name(self) -> str:
        return "sql"

    async def create_schema(self) -> None:
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cannot create cache schema: {e}", cause=e) from e
        self._schema_ready = True

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if not self._schema_ready:
                await self.create_schema()

    async def _load(self, key: str) -> StoredItem | None:
        await self._ensure_schema()
        try:
            async with self._sessions() as session:
                record = await session.get(CacheRecord, key)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"sql store read failed: {e}", key=key, cause=e) from e

        if record is None:
            return None
        return StoredItem(
            entry=CacheEntry(payload=record.payload, cached_at=record.cached_at),
            expires_at=record.expires_at,
        )

    async def _save(self, key: str, item: StoredItem) -> None:
        await self._ensure_schema()
        record = CacheRecord(
            key=key,
            payload=item.entry.payload,
            cached_at=item.entry.cached_at,
            expires_at=item.expires_at,
        )
        try:
            async with self._sessions() as session:
                async with session.begin():
                    await session.merge(record)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"sql store write failed: {e}", key=key, cause=e) from e

    async def close(self) -> None:
        if self._owns_engine:
            await self.engine.dispose()
