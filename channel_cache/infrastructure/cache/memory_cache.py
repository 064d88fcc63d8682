#!/usr/bin/env python3
"""
TTL Memory Cache

In-process expiring key/value store: the first cache tier.

Architecture:
    MemoryCache
        ├── CacheEntry map (OrderedDict, insertion order = eviction order)
        ├── Lazy expiry (on read past expiresAt)
        └── Background sweep task (periodic removal of expired entries)

Expiry rules:
    - set() stores expiresAt = now + ttl and overwrites unconditionally
    - get() returns the value while now <= expiresAt
    - an expired entry found by get() is deleted immediately (lazy eviction)
    - the sweep deletes every entry with expiresAt < now, independent of reads

Concurrency:
    All mutation happens under one asyncio.Lock. Sweep and lazy eviction
    both use dict.pop(key, None), so whichever runs second is a no-op.

None is the miss marker; a stored None value is indistinguishable from a miss.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from channel_cache.core.config.constants import Stage
from channel_cache.core.exceptions import InvalidArgumentError
from channel_cache.core.logging import get_logger, log_stage

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """One cached value and its absolute expiry (clock seconds)."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class MemoryCache:
    """
    TTL key/value store with active sweep and lazy expiry.

    STAGE-2.1: Memory tier

    Usage:
        cache = MemoryCache(max_size=10000, sweep_interval=60)
        cache.start_sweeper()

        await cache.set("channels:page:1", payload, ttl=600)
        payload = await cache.get("channels:page:1")

        await cache.stop_sweeper()
    """

    def __init__(
        self,
        max_size: int = 10000,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the memory tier.

        Args:
            max_size: Entry count bound; oldest-inserted entries go first
            sweep_interval: Seconds between background sweeps
            clock: Monotonic clock returning seconds (injectable for tests)
        """
        self._max_size = max_size
        self._sweep_interval = sweep_interval
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task | None = None

        # Counters
        self._lazy_evictions = 0
        self._capacity_evictions = 0
        self._sweep_runs = 0
        self._swept_entries = 0

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """
        Return the live value for ``key`` or None on miss.

        An entry found past its expiry is deleted before reporting the miss.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                self._entries.pop(key, None)
                self._lazy_evictions += 1
                log_stage(logger, Stage.MEMORY_LOOKUP, "Expired entry evicted on read", level="debug", cache_key=key)
                return None

            return entry.value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        """
        Store ``value`` under ``key`` for ``ttl`` seconds.

        Overwrites any existing entry and moves it to the newest position.

        Raises:
            InvalidArgumentError: If ttl is not positive
        """
        if ttl <= 0:
            raise InvalidArgumentError(
                "ttl must be > 0",
                details={"field": "ttl", "value": ttl},
            )

        async with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
                self._capacity_evictions += 1

    async def invalidate(self, key: str) -> bool:
        """
        Delete one entry.

        Returns:
            True if an entry was removed
        """
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def invalidate_by_pattern(self, pattern: str) -> int:
        """
        Delete every entry whose key contains ``pattern`` as a substring.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            doomed = [key for key in self._entries if pattern in key]
            for key in doomed:
                self._entries.pop(key, None)
            return len(doomed)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    # -------------------------------------------------------------------------
    # Active Sweep
    # -------------------------------------------------------------------------

    async def sweep(self) -> int:
        """
        Remove all expired entries.

        STAGE-2.5: Cache sweep

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                self._entries.pop(key, None)

            self._sweep_runs += 1
            self._swept_entries += len(expired)

        if expired:
            log_stage(logger, Stage.CACHE_SWEEP, "Expired entries swept", level="debug", removed=len(expired))

        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            await self.sweep()

    def start_sweeper(self) -> None:
        """
        Start the periodic sweep task on the running event loop.

        Calling it again while the task is alive is a no-op.
        """
        if self._sweep_task is not None and not self._sweep_task.done():
            return

        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="memory-cache-sweep")
        log_stage(logger, Stage.CACHE_SWEEP, "Sweep task started", interval_seconds=self._sweep_interval)

    async def stop_sweeper(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task = self._sweep_task
        self._sweep_task = None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

        log_stage(logger, Stage.CLEANUP, "Sweep task stopped")

    @property
    def sweeper_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_size(self) -> int:
        """Current entry count (expired entries not yet swept included)."""
        return len(self._entries)

    def get_max_size(self) -> int:
        return self._max_size

    def get_keys(self) -> list[str]:
        """Keys in insertion order (oldest first)."""
        return list(self._entries.keys())

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_size": self._max_size,
            "lazy_evictions": self._lazy_evictions,
            "capacity_evictions": self._capacity_evictions,
            "sweep_runs": self._sweep_runs,
            "swept_entries": self._swept_entries,
        }
