"""Process-local cache store."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from .base import CacheStore, StoredItem


class MemoryCacheStore(CacheStore):
    """In-memory store that keeps expired items around for stale reads.

    Items are only dropped when capacity is exceeded, oldest write first.
    """

    def __init__(
        self,
        default_ttl: int = 300,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(default_ttl=default_ttl, clock=clock)
        self.max_entries = max_entries
        self._items: OrderedDict[str, StoredItem] = OrderedDict()

    @property
    def name(self) -> str:
        return "memory"

    async def _load(self, key: str) -> StoredItem | None:
        return self._items.get(key)

    async def _save(self, key: str, item: StoredItem) -> None:
        self._items[key] = item
        self._items.move_to_end(key)
        while len(self._items) > self.max_entries:
            self._items.popitem(last=False)

    def __len__(self) -> int:
        return len(self._items)
