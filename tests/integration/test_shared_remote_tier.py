"""
Integration Tests: several layers together

- two service instances sharing one remote tier
- an app seeded from a JSON file through configuration
"""

import orjson
import pytest
from fastapi.testclient import TestClient

from channel_cache.application.app import create_app
from channel_cache.application.services import ChannelDiscoveryService
from channel_cache.application.sources import InMemoryChannelSource
from channel_cache.core.config.settings import Settings
from channel_cache.core.exceptions import ConfigurationError
from channel_cache.core.observability import PerformanceTracker
from channel_cache.infrastructure.cache import MemoryCache, RemoteCacheClient, TieredCache
from tests.test_fixtures import ChannelFactory, FailingBackend, InMemoryBackend


def _service(backend, source, settings):
    cache = TieredCache(MemoryCache(), RemoteCacheClient(backend=backend, timeout=0.5))
    return ChannelDiscoveryService(cache, PerformanceTracker(), source, settings=settings)


@pytest.mark.integration
class TestSharedRemoteTier:
    @pytest.mark.asyncio
    async def test_second_instance_served_from_remote(self, test_settings):
        backend = InMemoryBackend()
        source = InMemoryChannelSource(ChannelFactory.catalog())
        first = _service(backend, source, test_settings)
        second = _service(backend, source, test_settings)

        written = await first.list_channels({"category": "tech"})
        read = await second.list_channels({"category": "tech"})

        assert written.cache_hit is False
        assert read.cache_hit is True
        assert read.payload == written.payload
        assert backend.ttls[written.cache_key] == test_settings.CACHE_TTL_CHANNELS
        assert second.cache.stats()["remote_hits"] == 1

    @pytest.mark.asyncio
    async def test_remote_outage_still_serves(self, test_settings):
        source = InMemoryChannelSource(ChannelFactory.catalog())
        service = _service(FailingBackend(), source, test_settings)

        miss = await service.get_channel("1")
        hit = await service.get_channel("1")

        assert miss.payload["id"] == "1"
        assert hit.cache_hit is True
        health = await service.cache.health_check()
        assert health["status"] == "degraded"


@pytest.mark.integration
class TestSeededApplication:
    def test_app_reads_seed_file(self, tmp_path, monkeypatch):
        seed = tmp_path / "channels.json"
        seed.write_bytes(orjson.dumps(ChannelFactory.catalog()))
        monkeypatch.setenv("CHANNEL_SEED_FILE", str(seed))

        app = create_app(settings=Settings(LOG_FORMAT="console"))
        with TestClient(app) as client:
            response = client.get("/api/channels", params={"activity": "high"})

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["channels"]] == ["2"]

    def test_missing_seed_file_fails_startup(self, tmp_path):
        settings = Settings(CHANNEL_SEED_FILE=str(tmp_path / "absent.json"), LOG_FORMAT="console")
        app = create_app(settings=settings)

        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass
