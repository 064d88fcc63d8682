#!/usr/bin/env python3
"""
Two-Tier Cache - Memory + Optional Remote

Architecture:
    TieredCache (Public API)
        ├── MemoryCache (in-process TTL store, swept in the background)
        ├── RemoteCacheClient (optional shared tier, never raises)
        └── CacheObserver (hit/miss counters, Prometheus export, stage logging)

Algorithm:
    GET: memory → remote → miss (repopulate memory with the same TTL on remote hit)
    SET: memory + remote (remote best-effort)
    INVALIDATE key: memory + remote delete (remote best-effort)
    INVALIDATE pattern: memory only (remote entries age out by TTL)

Lifecycle:
    cache = TieredCache.from_settings(settings)
    await cache.start()     # starts the sweep task
    ...
    await cache.stop()      # cancels the sweep, closes the remote client
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from channel_cache.core.config.constants import Stage
from channel_cache.core.config.settings import Settings
from channel_cache.core.logging import get_logger, log_stage
from channel_cache.infrastructure.cache.memory_cache import MemoryCache
from channel_cache.infrastructure.cache.remote_client import (
    RemoteCacheClient,
    RemoteStatus,
    build_remote_client,
)
from channel_cache.infrastructure.monitoring import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

CacheSource = Literal["memory", "remote", "miss"]


@dataclass(frozen=True)
class CacheLookup:
    """Result of a tiered lookup: the value (None on miss) and the tier that answered."""

    value: Any
    source: CacheSource

    @property
    def hit(self) -> bool:
        return self.source != "miss"


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Counts lookups per tier, exports them to Prometheus and logs them with stage tags.

    Metrics Tracked:
    - memory hits, remote hits, misses
    - remote tier failures absorbed
    """

    def __init__(self, logger_instance=None, metrics: MetricsCollector | None = None):
        self._logger = logger_instance or logger
        self._metrics = metrics or get_metrics_collector()
        self._memory_hits = 0
        self._remote_hits = 0
        self._misses = 0
        self._remote_failures = 0

    def record_lookup(self, source: CacheSource, key: str) -> None:
        if source == "memory":
            self._memory_hits += 1
            self._metrics.record_cache_hit("memory")
            log_stage(self._logger, Stage.MEMORY_LOOKUP, "Memory cache hit", level="debug", cache_key=key)
        elif source == "remote":
            self._remote_hits += 1
            self._metrics.record_cache_hit("remote")
            log_stage(self._logger, Stage.REMOTE_LOOKUP, "Remote cache hit", level="debug", cache_key=key)
        else:
            self._misses += 1
            self._metrics.record_cache_miss()
            log_stage(self._logger, Stage.CACHE_LOOKUP, "Cache miss", level="debug", cache_key=key)

    def record_remote_failure(self, operation: str) -> None:
        self._remote_failures += 1
        self._metrics.record_remote_failure(operation)

    def hit_rate_percent(self) -> float:
        total = self._memory_hits + self._remote_hits + self._misses
        if total == 0:
            return 0.0
        return (self._memory_hits + self._remote_hits) / total * 100

    def get_stats(self) -> dict[str, Any]:
        total = self._memory_hits + self._remote_hits + self._misses
        return {
            "memory_hits": self._memory_hits,
            "remote_hits": self._remote_hits,
            "misses": self._misses,
            "total_requests": total,
            "hit_rate": round(self.hit_rate_percent(), 2),
            "remote_failures": self._remote_failures,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class TieredCache:
    """
    Memory tier in front of an optional remote tier.

    STAGE-2: Cache lookup / populate / invalidate

    Usage:
        cache = TieredCache(MemoryCache(), RemoteCacheClient())
        await cache.start()

        lookup = await cache.get("channels:page:1", ttl=600)
        if not lookup.hit:
            await cache.set("channels:page:1", payload, ttl=600)

        await cache.invalidate_by_pattern("channels")
        await cache.stop()
    """

    def __init__(
        self,
        memory: MemoryCache,
        remote: RemoteCacheClient | None = None,
        enabled: bool = True,
        metrics: MetricsCollector | None = None,
    ):
        """
        Args:
            memory: Memory tier
            remote: Remote tier client (None behaves as a disabled tier)
            enabled: When False every lookup misses and writes are dropped
            metrics: Prometheus collector (default: the process-wide one)
        """
        self._memory = memory
        self._remote = remote or RemoteCacheClient()
        self._enabled = enabled
        self._observer = CacheObserver(metrics=metrics)

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Tiered cache initialized",
            memory_max_size=memory.get_max_size(),
            remote_backend=self._remote.backend_name,
            caching_enabled=enabled,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TieredCache":
        """Build both tiers from configuration."""
        cache_settings = settings.cache
        memory = MemoryCache(
            max_size=cache_settings.CACHE_L1_MAX_SIZE,
            sweep_interval=cache_settings.CACHE_SWEEP_INTERVAL,
        )
        remote = build_remote_client(settings.remote_cache)
        return cls(memory, remote, enabled=cache_settings.CACHE_ENABLED)

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @property
    def remote(self) -> RemoteCacheClient:
        return self._remote

    @property
    def enabled(self) -> bool:
        return self._enabled

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the memory tier sweep (requires a running event loop)."""
        self._memory.start_sweeper()

    async def stop(self) -> None:
        """
        Stop the sweep and release the remote client.

        STAGE-6.0: Cache shutdown
        """
        await self._memory.stop_sweeper()
        await self._remote.close()
        log_stage(logger, Stage.CLEANUP, "Tiered cache stopped")

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str, ttl: int) -> CacheLookup:
        """
        Look ``key`` up in memory, then in the remote tier.

        STAGE-2.1: Memory lookup
        STAGE-2.2: Remote lookup (on memory miss)

        Args:
            key: Cache key
            ttl: Resource TTL, used to repopulate memory on a remote hit

        Returns:
            CacheLookup with the value and answering tier
        """
        if not self._enabled:
            return CacheLookup(None, "miss")

        value = await self._memory.get(key)
        if value is not None:
            self._observer.record_lookup("memory", key)
            return CacheLookup(value, "memory")

        result = await self._remote.get(key)
        if result.status == RemoteStatus.UNAVAILABLE:
            self._observer.record_remote_failure("get")

        if result.is_hit and result.value is not None:
            await self._memory.set(key, result.value, ttl)
            self._observer.record_lookup("remote", key)
            return CacheLookup(result.value, "remote")

        self._observer.record_lookup("miss", key)
        return CacheLookup(None, "miss")

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """
        Populate both tiers.

        STAGE-2.3: Cache population

        The remote write is best-effort; its failure leaves the memory entry in place.
        """
        if not self._enabled:
            return

        await self._memory.set(key, value, ttl)

        result = await self._remote.set(key, value, ttl)
        if result.status == RemoteStatus.UNAVAILABLE:
            self._observer.record_remote_failure("set")

        log_stage(logger, Stage.CACHE_POPULATE, "Cache populated", level="debug", cache_key=key, ttl=ttl)

    async def get_or_compute(
        self,
        key: str,
        ttl: int,
        compute_fn: Callable[[], Awaitable[Any]],
    ) -> CacheLookup:
        """
        Cache-aside: return the cached value or compute, store and return it.

        STAGE-2.0: Cache-aside

        A computed None is returned as a miss and is not cached.
        """
        lookup = await self.get(key, ttl)
        if lookup.hit:
            return lookup

        value = await compute_fn()
        if value is not None:
            await self.set(key, value, ttl)
        return CacheLookup(value, "miss")

    async def invalidate(self, key: str) -> bool:
        """
        Remove one key from both tiers.

        STAGE-2.4: Cache invalidation

        Returns:
            True if the memory tier held the key
        """
        removed = await self._memory.invalidate(key)
        await self._remote.delete(key)
        log_stage(logger, Stage.CACHE_INVALIDATE, "Cache key invalidated", cache_key=key, removed=removed)
        return removed

    async def invalidate_by_pattern(self, pattern: str) -> int:
        """
        Remove every memory entry whose key contains ``pattern``.

        STAGE-2.4: Bulk invalidation

        Returns:
            Number of memory entries removed
        """
        removed = await self._memory.invalidate_by_pattern(pattern)
        log_stage(logger, Stage.CACHE_INVALIDATE, "Cache pattern invalidated", pattern=pattern, removed=removed)
        return removed

    async def clear(self) -> None:
        await self._memory.clear()

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def hit_rate_percent(self) -> float:
        return self._observer.hit_rate_percent()

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with per-tier hit counts, hit rate, memory size and sweep counters
        """
        memory_stats = self._memory.stats()
        return {
            **self._observer.get_stats(),
            "memory_size": memory_stats["size"],
            "memory_max_size": memory_stats["max_size"],
            "sweep_runs": memory_stats["sweep_runs"],
            "swept_entries": memory_stats["swept_entries"],
            "lazy_evictions": memory_stats["lazy_evictions"],
            "capacity_evictions": memory_stats["capacity_evictions"],
            "remote_tier": "enabled" if self._remote.enabled else "disabled",
            "remote_backend": self._remote.backend_name,
            "caching_enabled": self._enabled,
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on both tiers.

        The memory tier is always healthy. A disabled remote tier keeps the
        overall status healthy; a failing one marks it degraded.
        """
        remote_health = await self._remote.health_check()
        status = "degraded" if remote_health["status"] == "degraded" else "healthy"

        return {
            "status": status,
            "caching_enabled": self._enabled,
            "memory": {
                "status": "healthy",
                "size": self._memory.get_size(),
                "max_size": self._memory.get_max_size(),
                "sweeper_running": self._memory.sweeper_running,
            },
            "remote": remote_health,
        }
