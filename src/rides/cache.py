"""Time-based staleness cache for query results."""

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    fetched_at: float


class StalenessCache(Generic[T]):
    """Keeps the last result per key until it is older than ``stale_after`` seconds.

    Stale entries are pruned whenever a new value is stored, so the cache
    only ever holds results still inside their window.
    """

    def __init__(self, stale_after: float, clock: Callable[[], float] = time.monotonic):
        self.stale_after = stale_after
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}

    def get(self, key: Hashable) -> T | None:
        """Fresh value for ``key``, or None when missing or stale."""
        entry = self._entries.get(key)
        if entry is None or self.is_stale(key):
            return None
        return entry.value

    def put(self, key: Hashable, value: T) -> None:
        now = self._clock()
        self._entries = {
            k: entry
            for k, entry in self._entries.items()
            if now - entry.fetched_at < self.stale_after
        }
        self._entries[key] = CacheEntry(value=value, fetched_at=now)

    def is_stale(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return True
        return self._clock() - entry.fetched_at >= self.stale_after

    def __len__(self) -> int:
        return len(self._entries)
