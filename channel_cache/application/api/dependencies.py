"""
FastAPI Dependency Injection
============================

Route handlers never construct the cache, tracker or service themselves.
The application lifespan builds them once and stores them on
``app.state``; the functions below hand them to handlers through
FastAPI's ``Depends()``.

Each app instance, test apps included, owns its own cache and metrics.

Example:
    @router.get("/channels")
    async def list_channels(service: ServiceDep):
        return await service.list_channels({...})
"""

from typing import Annotated

from fastapi import Depends, Request

from channel_cache.application.services import ChannelDiscoveryService
from channel_cache.core.config.settings import Settings, get_settings
from channel_cache.core.exceptions import ConfigurationError
from channel_cache.infrastructure.cache import TieredCache


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ConfigurationError(
            f"{name} not initialized in app.state",
            details={"component": name},
        ).with_suggestion("Run the app through its lifespan (use TestClient as a context manager in tests)")
    return value


def get_service(request: Request) -> ChannelDiscoveryService:
    """Retrieve the ChannelDiscoveryService built during startup."""
    return _from_state(request, "service")


def get_cache(request: Request) -> TieredCache:
    """Retrieve the TieredCache built during startup."""
    return _from_state(request, "cache")


def get_app_settings(request: Request) -> Settings:
    """
    Settings the app was created with, falling back to the process-wide instance.
    """
    return getattr(request.app.state, "settings", None) or get_settings()


# ============================================================================
# TYPE ALIASES
# ============================================================================

ServiceDep = Annotated[ChannelDiscoveryService, Depends(get_service)]
CacheDep = Annotated[TieredCache, Depends(get_cache)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
