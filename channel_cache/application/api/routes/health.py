"""
Health Check Routes
===================

GET /health reports the state of both cache tiers:

- memory tier: always healthy while the process is up
- remote tier: "disabled" (not configured), "healthy" (ping round-trip
  succeeded) or "degraded" (ping failed or timed out)

A degraded remote tier does not fail the service (reads fall back to
memory and the source), so the endpoint answers 200 with
``status="degraded"`` rather than 503.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from channel_cache.application.api.dependencies import CacheDep, SettingsDep
from channel_cache.application.api.models import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health_check(cache: CacheDep, settings: SettingsDep):
    """Cache tier health for load balancers and dashboards."""
    cache_health = await cache.health_check()
    return HealthResponse(
        status=cache_health["status"],
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        version=settings.app.APP_VERSION,
        environment=settings.app.ENVIRONMENT,
        components={"cache": cache_health},
    )
