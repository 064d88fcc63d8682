"""
Unit Tests for MemoryCache

Expiry, lazy eviction, sweep, pattern invalidation, capacity and
concurrency of the in-process tier. Time is driven by FakeClock.
"""

import asyncio

import pytest

from channel_cache.core.exceptions import InvalidArgumentError
from channel_cache.infrastructure.cache import MemoryCache


@pytest.mark.unit
class TestMemoryCacheBasics:
    @pytest.mark.asyncio
    async def test_set_then_get_returns_value(self, memory_cache):
        await memory_cache.set("k", {"channels": []}, ttl=60)

        assert await memory_cache.get("k") == {"channels": []}

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, memory_cache):
        assert await memory_cache.get("absent") is None

    @pytest.mark.asyncio
    async def test_set_overwrites_unconditionally(self, memory_cache, fake_clock):
        await memory_cache.set("k", "old", ttl=10)
        await memory_cache.set("k", "new", ttl=100)
        fake_clock.advance(50)

        assert await memory_cache.get("k") == "new"

    @pytest.mark.asyncio
    async def test_non_positive_ttl_rejected(self, memory_cache):
        with pytest.raises(InvalidArgumentError):
            await memory_cache.set("k", "v", ttl=0)


@pytest.mark.unit
class TestExpiry:
    @pytest.mark.asyncio
    async def test_value_readable_at_exact_expiry(self, memory_cache, fake_clock):
        await memory_cache.set("k", "v", ttl=1)
        fake_clock.advance(1)

        assert await memory_cache.get("k") == "v"

    @pytest.mark.asyncio
    async def test_expired_read_misses_and_evicts(self, memory_cache, fake_clock):
        await memory_cache.set("k", "v", ttl=1)
        fake_clock.advance(1.001)

        assert await memory_cache.get("k") is None
        assert memory_cache.get_size() == 0
        assert memory_cache.stats()["lazy_evictions"] == 1

    @pytest.mark.asyncio
    async def test_real_clock_expiry(self):
        cache = MemoryCache()
        await cache.set("k", "v", ttl=0.05)
        await asyncio.sleep(0.1)

        assert await cache.get("k") is None


@pytest.mark.unit
class TestSweep:
    @pytest.mark.asyncio
    async def test_sweep_removes_only_expired(self, memory_cache, fake_clock):
        await memory_cache.set("short", 1, ttl=5)
        await memory_cache.set("long", 2, ttl=500)
        fake_clock.advance(10)

        removed = await memory_cache.sweep()

        assert removed == 1
        assert memory_cache.get_keys() == ["long"]
        assert memory_cache.stats()["sweep_runs"] == 1
        assert memory_cache.stats()["swept_entries"] == 1

    @pytest.mark.asyncio
    async def test_sweep_then_lazy_eviction_does_not_fail(self, memory_cache, fake_clock):
        await memory_cache.set("k", "v", ttl=1)
        fake_clock.advance(5)

        await memory_cache.sweep()
        assert await memory_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_background_sweeper_runs_periodically(self, fake_clock):
        cache = MemoryCache(sweep_interval=0.01, clock=fake_clock)
        await cache.set("k", "v", ttl=1)
        fake_clock.advance(2)

        cache.start_sweeper()
        assert cache.sweeper_running
        await asyncio.sleep(0.05)
        await cache.stop_sweeper()

        assert cache.get_size() == 0
        assert cache.stats()["sweep_runs"] >= 1
        assert not cache.sweeper_running

    @pytest.mark.asyncio
    async def test_start_sweeper_is_idempotent(self, memory_cache):
        memory_cache.start_sweeper()
        first = memory_cache._sweep_task
        memory_cache.start_sweeper()

        assert memory_cache._sweep_task is first
        await memory_cache.stop_sweeper()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, memory_cache):
        await memory_cache.stop_sweeper()


@pytest.mark.unit
class TestInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_single_key(self, memory_cache):
        await memory_cache.set("k", "v", ttl=60)

        assert await memory_cache.invalidate("k") is True
        assert await memory_cache.invalidate("k") is False
        assert await memory_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_invalidate_by_pattern_is_substring_match(self, memory_cache):
        await memory_cache.set("channels:page:1", 1, ttl=60)
        await memory_cache.set("channels:category:tech:page:2", 2, ttl=60)
        await memory_cache.set("search:q:channels", 3, ttl=60)
        await memory_cache.set("channel:id:1", 4, ttl=60)

        removed = await memory_cache.invalidate_by_pattern("channels")

        assert removed == 3
        assert memory_cache.get_keys() == ["channel:id:1"]
        assert await memory_cache.get("channel:id:1") == 4

    @pytest.mark.asyncio
    async def test_clear(self, memory_cache):
        await memory_cache.set("a", 1, ttl=60)
        await memory_cache.clear()

        assert memory_cache.get_size() == 0


@pytest.mark.unit
class TestCapacity:
    @pytest.mark.asyncio
    async def test_oldest_inserted_entry_evicted_first(self, fake_clock):
        cache = MemoryCache(max_size=2, clock=fake_clock)
        await cache.set("a", 1, ttl=60)
        await cache.set("b", 2, ttl=60)
        await cache.set("c", 3, ttl=60)

        assert cache.get_keys() == ["b", "c"]
        assert cache.stats()["capacity_evictions"] == 1

    @pytest.mark.asyncio
    async def test_overwrite_refreshes_position(self, fake_clock):
        cache = MemoryCache(max_size=2, clock=fake_clock)
        await cache.set("a", 1, ttl=60)
        await cache.set("b", 2, ttl=60)
        await cache.set("a", 10, ttl=60)
        await cache.set("c", 3, ttl=60)

        assert cache.get_keys() == ["a", "c"]


@pytest.mark.unit
class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_writers_and_readers(self, memory_cache, fake_clock):
        async def writer(i):
            await memory_cache.set(f"k{i}", i, ttl=1 if i % 2 else 100)

        await asyncio.gather(*(writer(i) for i in range(50)))
        fake_clock.advance(10)

        results = await asyncio.gather(
            memory_cache.sweep(),
            *(memory_cache.get(f"k{i}") for i in range(50)),
        )

        values = results[1:]
        assert [v for v in values if v is not None] == list(range(0, 50, 2))
        assert memory_cache.get_size() == 25
