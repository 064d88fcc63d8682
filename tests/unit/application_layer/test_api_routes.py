"""
Unit Tests for the HTTP API

Drives the full FastAPI app (lifespan included) over an in-memory
channel source with the remote tier disabled.
"""

from unittest.mock import AsyncMock

import orjson
import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from channel_cache.application.app import create_app, default_source
from channel_cache.application.sources import InMemoryChannelSource
from channel_cache.core.config.settings import Settings
from channel_cache.core.exceptions import ConfigurationError
from tests.test_fixtures import ChannelFactory


@pytest.fixture
def app_settings():
    return Settings(ENVIRONMENT="test", LOG_FORMAT="console")


@pytest.fixture
def source():
    return InMemoryChannelSource(ChannelFactory.catalog())


@pytest.fixture
def client(source, app_settings):
    app = create_app(source=source, settings=app_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.unit
class TestChannelRoutes:
    def test_list_channels_miss_then_hit(self, client):
        first = client.get("/api/channels", params={"category": "tech"})
        second = client.get("/api/channels", params={"category": "tech"})

        assert first.status_code == 200
        assert [c["id"] for c in first.json()["channels"]] == ["1", "4", "3"]
        assert first.headers["X-Cache"] == "MISS"
        assert first.headers["Cache-Control"] == "public, s-maxage=600, stale-while-revalidate=30"
        assert second.headers["X-Cache"] == "HIT"
        assert second.json() == first.json()

    def test_param_order_shares_cache_entry(self, client):
        client.get("/api/channels?page=1&language=en&limit=10")
        response = client.get("/api/channels?limit=10&language=en&page=1")

        assert response.headers["X-Cache"] == "HIT"

    def test_pagination_body(self, client):
        body = client.get("/api/channels", params={"page": "2", "limit": "2"}).json()

        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 5,
            "hasNext": True,
            "hasPrev": True,
        }

    @pytest.mark.parametrize(
        "params",
        [
            {"page": "0"},
            {"limit": "abc"},
            {"limit": "1000"},
            {"minSubscribers": "-3"},
            {"minSubscribers": "10", "maxSubscribers": "1"},
            {"activity": "extreme"},
        ],
    )
    def test_malformed_params_are_400(self, client, params):
        response = client.get("/api/channels", params=params)

        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidArgumentError"

    def test_search(self, client):
        response = client.get("/api/channels/search", params={"q": "tech"})

        assert response.status_code == 200
        body = response.json()
        assert [c["id"] for c in body["channels"]] == ["1", "4", "3"]
        assert body["searchQuery"] == "tech"
        assert response.headers["Cache-Control"] == "public, s-maxage=300, stale-while-revalidate=30"

    def test_search_requires_query(self, client):
        response = client.get("/api/channels/search")

        assert response.status_code == 400
        assert response.json()["message"] == "Search query is required"

    def test_channel_detail(self, client):
        response = client.get("/api/channels/1")

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Tech Daily"
        assert body["recentPosts"] == []
        assert [c["id"] for c in body["similarChannels"]] == ["4", "3"]
        assert response.headers["Cache-Control"] == "public, s-maxage=900, stale-while-revalidate=60"

    def test_unknown_channel_is_404(self, client):
        response = client.get("/api/channels/999")

        assert response.status_code == 404
        assert response.json()["error_type"] == "ChannelNotFoundError"

    def test_join_public_channel(self, client):
        response = client.post("/api/channels/1/join")

        assert response.status_code == 200
        assert response.json() == {"joinLink": "https://t.me/techdaily", "channelTitle": "Tech Daily"}
        assert response.headers["X-Cache"] == "MISS"

    def test_join_private_channel_is_400(self, client):
        response = client.post("/api/channels/4/join")

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot join private channel"

    def test_join_unknown_channel_is_404(self, client):
        assert client.post("/api/channels/999/join").status_code == 404


@pytest.mark.unit
class TestThreadId:
    def test_generated_when_absent(self, client):
        response = client.get("/api/channels")

        assert response.headers["X-Thread-ID"]

    def test_propagated_to_response_and_error_body(self, client):
        response = client.get("/api/channels/999", headers={"X-Thread-ID": "trace-123"})

        assert response.headers["X-Thread-ID"] == "trace-123"
        assert response.json()["thread_id"] == "trace-123"


@pytest.mark.unit
class TestErrorHandling:
    def test_read_path_error_is_500(self, source, app_settings):
        source.find_channels = AsyncMock(side_effect=ConfigurationError("source misconfigured"))
        app = create_app(source=source, settings=app_settings)

        with TestClient(app) as client:
            response = client.get("/api/channels")

        assert response.status_code == 500
        assert response.json()["error_type"] == "ConfigurationError"

    def test_unexpected_error_is_generic_500(self, source, app_settings):
        source.find_channel = AsyncMock(side_effect=RuntimeError("boom"))
        app = create_app(source=source, settings=app_settings)

        with TestClient(app) as client:
            response = client.get("/api/channels/1")

        assert response.status_code == 500
        body = response.json()
        assert body["error_type"] == "InternalServerError"
        assert body["details"]["original_error"] == "RuntimeError"
        assert "boom" not in body["message"]


@pytest.mark.unit
class TestHealthAndAdmin:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["components"]["cache"]["remote"]["status"] == "disabled"
        assert body["components"]["cache"]["memory"]["sweeper_running"] is True

    def test_metrics_summary(self, client):
        client.get("/api/channels")
        client.get("/api/channels")

        body = client.get("/api/metrics/summary").json()

        assert body["performance"]["cacheHitRate"] == 50.0
        assert body["operations"]["channels-get"]["sampleCount"] == 2
        assert body["cache"]["memory_size"] == 1
        assert body["warnings"] == []

    def test_prometheus_metrics(self, client):
        hits_before = REGISTRY.get_sample_value("channel_cache_hits_total", {"tier": "memory"}) or 0.0
        timed_before = (
            REGISTRY.get_sample_value("channel_cache_operation_duration_seconds_count", {"operation": "channels-get"})
            or 0.0
        )

        client.get("/api/channels")
        client.get("/api/channels")
        response = client.get("/api/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "channel_cache_hits_total{tier=\"memory\"}" in response.text
        assert "channel_cache_operation_duration_seconds_bucket" in response.text
        assert REGISTRY.get_sample_value("channel_cache_hits_total", {"tier": "memory"}) == hits_before + 1
        assert (
            REGISTRY.get_sample_value("channel_cache_operation_duration_seconds_count", {"operation": "channels-get"})
            == timed_before + 2
        )

    def test_invalidate_key(self, client):
        client.get("/api/channels/1")

        response = client.post("/api/cache/invalidate", json={"key": "channel:id:1"})

        assert response.json() == {"target": "channel:id:1", "mode": "key", "removed": 1}
        assert client.get("/api/channels/1").headers["X-Cache"] == "MISS"

    def test_invalidate_pattern(self, client):
        client.get("/api/channels")
        client.get("/api/channels", params={"page": "2"})
        client.get("/api/channels/search", params={"q": "tech"})

        response = client.post("/api/cache/invalidate", json={"pattern": "channels"})

        assert response.json() == {"target": "channels", "mode": "pattern", "removed": 2}
        assert client.get("/api/channels/search", params={"q": "tech"}).headers["X-Cache"] == "HIT"

    @pytest.mark.parametrize("body", [{}, {"key": "a", "pattern": "b"}])
    def test_invalidate_needs_exactly_one_target(self, client, body):
        assert client.post("/api/cache/invalidate", json=body).status_code == 422

    def test_blank_pattern_is_400(self, client):
        assert client.post("/api/cache/invalidate", json={"pattern": "  "}).status_code == 400


@pytest.mark.unit
class TestDefaultSource:
    def test_empty_without_seed_file(self):
        source = default_source(Settings(ENVIRONMENT="test"))

        assert len(source) == 0

    def test_seeded_from_file(self, tmp_path):
        seed = tmp_path / "seed.json"
        seed.write_bytes(orjson.dumps(ChannelFactory.catalog()))

        source = default_source(Settings(ENVIRONMENT="test", CHANNEL_SEED_FILE=str(seed)))

        assert len(source) == 6

    def test_app_serves_seeded_channels(self, tmp_path):
        seed = tmp_path / "seed.json"
        seed.write_bytes(orjson.dumps(ChannelFactory.catalog()))
        settings = Settings(ENVIRONMENT="test", LOG_FORMAT="console", CHANNEL_SEED_FILE=str(seed))

        with TestClient(create_app(settings=settings)) as test_client:
            response = test_client.get("/api/channels/2")

        assert response.status_code == 200
        assert response.json()["title"] == "Crypto Signals"
