"""
Cache Test Factory

Controllable clock and remote-tier backends for cache tests.
"""

import asyncio

from channel_cache.infrastructure.cache.remote_client import KeyValueBackend


class FakeClock:
    """Manually advanced clock; pass ``clock`` wherever a time source is injectable."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryBackend(KeyValueBackend):
    """Dict-backed remote tier. Records TTLs so tests can assert on them."""

    name = "in_memory"

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})
        self.ttls: dict[str, int] = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ttl):
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def ping(self):
        return True

    async def close(self):
        self.closed = True


class FailingBackend(KeyValueBackend):
    """Every call raises ConnectionError."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    async def _fail(self):
        self.calls += 1
        raise ConnectionError("connection refused")

    async def get(self, key):
        await self._fail()

    async def set(self, key, value, ttl):
        await self._fail()

    async def delete(self, key):
        await self._fail()

    async def ping(self):
        await self._fail()

    async def close(self):
        pass


class SlowBackend(InMemoryBackend):
    """Sleeps before answering; pair with a small client timeout."""

    name = "slow"

    def __init__(self, delay: float = 1.0):
        super().__init__()
        self.delay = delay

    async def get(self, key):
        await asyncio.sleep(self.delay)
        return await super().get(key)

    async def set(self, key, value, ttl):
        await asyncio.sleep(self.delay)
        await super().set(key, value, ttl)

    async def ping(self):
        await asyncio.sleep(self.delay)
        return True
