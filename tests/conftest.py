"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from channel_cache.application.services import ChannelDiscoveryService  # noqa: E402
from channel_cache.application.sources import InMemoryChannelSource  # noqa: E402
from channel_cache.core.config.settings import Settings, reload_settings  # noqa: E402
from channel_cache.core.observability import PerformanceTracker  # noqa: E402
from channel_cache.infrastructure.cache import MemoryCache, RemoteCacheClient, TieredCache  # noqa: E402
from tests.test_fixtures import ChannelFactory, FakeClock, InMemoryBackend  # noqa: E402

# Environment variables that would switch on real infrastructure
_ISOLATED_ENV = (
    "REMOTE_CACHE_BACKEND",
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
    "REDIS_URL",
    "CHANNEL_SEED_FILE",
    "CACHE_ENABLED",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


# ============================================================================
# Settings Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Strip infrastructure env vars and rebuild the settings singleton per test."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    settings = reload_settings()
    yield settings
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def test_settings() -> Settings:
    """Explicit settings object for code under test that accepts one."""
    return Settings(ENVIRONMENT="test", CACHE_SWEEP_INTERVAL=60, LOG_FORMAT="console")


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def memory_cache(fake_clock):
    return MemoryCache(max_size=100, sweep_interval=60, clock=fake_clock)


@pytest.fixture
def remote_backend():
    return InMemoryBackend()


@pytest.fixture
def remote_client(remote_backend):
    return RemoteCacheClient(backend=remote_backend, timeout=0.5)


@pytest.fixture
def tiered_cache(memory_cache, remote_client):
    """Memory tier (fake clock) in front of a dict-backed remote tier."""
    return TieredCache(memory_cache, remote_client)


@pytest.fixture
def memory_only_cache(memory_cache):
    return TieredCache(memory_cache, RemoteCacheClient())


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def tracker():
    return PerformanceTracker(smoothing_factor=0.1)


@pytest.fixture
def channel_records():
    return ChannelFactory.catalog()


@pytest.fixture
def channel_source(channel_records):
    return InMemoryChannelSource(channel_records)


@pytest.fixture
def channel_service(tiered_cache, tracker, channel_source, test_settings):
    return ChannelDiscoveryService(tiered_cache, tracker, channel_source, settings=test_settings)
