"""
In-process TTL cache with absolute and sliding expiration.

An entry is live while both clocks agree:

    now <= absolute_expiry and now - last_accessed <= sliding_window

Reads refresh ``last_accessed`` but never push ``absolute_expiry`` out.
Dead entries are dropped lazily on ``get``; the optional sweeper only bounds
memory and is never needed for correctness.

The store is split into shards, each guarded by its own lock, so operations
on different keys rarely contend and no call ever locks the whole cache.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from shared.errors import CacheInternalError
from shared.logging import get_logger

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """One cached value and its expiration bookkeeping."""
    key: str
    value: V
    created_at: float
    absolute_expiry: float
    last_accessed: float
    sliding_window: float

    def is_live(self, now: float) -> bool:
        return now <= self.absolute_expiry and now - self.last_accessed <= self.sliding_window


class _Shard:
    __slots__ = ("lock", "entries", "evictions")

    def __init__(self):
        self.lock = threading.Lock()
        self.entries: Dict[str, CacheEntry] = {}
        self.evictions = 0


class TTLCache(Generic[V]):
    """Concurrent key/value store with per-entry dual expiration."""

    def __init__(self,
                 name: str = "default",
                 shards: int = 16,
                 clock: Callable[[], float] = time.monotonic,
                 sweep_interval: Optional[float] = 60.0):
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self.name = name
        self.sweep_interval = sweep_interval
        self.logger = get_logger(f"catalog.cache.{name}")
        self._clock = clock
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]
        self._closed = False
        self._sweeper: Optional[asyncio.Task] = None

    def _shard_for(self, key: str) -> _Shard:
        if self._closed:
            raise CacheInternalError("Cache is closed", details={"cache": self.name})
        return self._shards[hash(key) % len(self._shards)]

    def get(self, key: str) -> Tuple[Optional[V], bool]:
        """Return ``(value, True)`` for a live entry, ``(None, False)`` otherwise."""
        shard = self._shard_for(key)
        with shard.lock:
            entry = shard.entries.get(key)
            if entry is None:
                return None, False
            now = self._clock()
            if not entry.is_live(now):
                del shard.entries[key]
                shard.evictions += 1
                return None, False
            entry.last_accessed = now
            return entry.value, True

    def set(self, key: str, value: V, absolute_ttl: float, sliding_ttl: float):
        """Store ``value`` under ``key``, replacing any previous entry."""
        if absolute_ttl <= 0 or sliding_ttl <= 0:
            raise ValueError("TTL values must be positive")
        shard = self._shard_for(key)
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            absolute_expiry=now + absolute_ttl,
            last_accessed=now,
            sliding_window=sliding_ttl,
        )
        with shard.lock:
            shard.entries[key] = entry

    def remove(self, key: str) -> bool:
        """Drop ``key``; returns whether an entry was present."""
        shard = self._shard_for(key)
        with shard.lock:
            return shard.entries.pop(key, None) is not None

    def count(self) -> int:
        """Number of stored entries, including dead ones not yet evicted."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total

    def sweep(self) -> int:
        """Evict every dead entry, one shard at a time."""
        if self._closed:
            return 0
        removed = 0
        for shard in self._shards:
            with shard.lock:
                now = self._clock()
                dead = [key for key, entry in shard.entries.items() if not entry.is_live(now)]
                for key in dead:
                    del shard.entries[key]
                shard.evictions += len(dead)
                removed += len(dead)
        if removed:
            self.logger.debug("Swept expired cache entries", removed=removed, cache=self.name)
        return removed

    def stats(self) -> Dict[str, Any]:
        evictions = 0
        for shard in self._shards:
            with shard.lock:
                evictions += shard.evictions
        return {
            "name": self.name,
            "entries": 0 if self._closed else self.count(),
            "evictions": evictions,
            "shards": len(self._shards),
            "closed": self._closed,
        }

    async def start(self):
        """Start the background sweeper, if an interval is configured."""
        if self._sweeper is not None or not self.sweep_interval:
            return
        self._sweeper = asyncio.create_task(self._sweep_loop())
        self.logger.info("Cache sweeper started", cache=self.name, interval=self.sweep_interval)

    async def stop(self):
        """Stop the sweeper and close the cache."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self.close()

    def close(self):
        """Drop all entries; later operations raise CacheInternalError."""
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()
        self._closed = True
        self.logger.info("Cache closed", cache=self.name)

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()
