from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class ExpiringCache:
    """
    In-memory key/value store where every entry carries its own TTL.

    Expired entries are dropped lazily when read; there is no other eviction.
    Reads and writes happen between awaits on a single event loop, so callers
    need no locking. Two concurrent misses for the same key may both compute;
    the last store wins.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}

    def _live_entry(self, key: Hashable) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        entry = self._live_entry(key)
        return entry.value if entry is not None else default

    def set(self, key: Hashable, value: V, ttl: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    async def get_or_populate(
        self,
        key: Hashable,
        ttl: float,
        compute: Callable[[], Awaitable[V]],
    ) -> V:
        """
        Return the cached value for key, computing and storing it on a miss.

        Exceptions raised by compute propagate and nothing is stored, so the
        next access retries. Successful results are stored as-is, including
        None and empty collections.
        """
        entry = self._live_entry(key)
        if entry is not None:
            return entry.value

        value = await compute()
        self.set(key, value, ttl)
        return value

    def __contains__(self, key: Hashable) -> bool:
        return self._live_entry(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
