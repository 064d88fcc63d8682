"""
Admin Routes

    GET  /metrics            Prometheus text exposition
    GET  /metrics/summary    moving-average snapshot and cache statistics (JSON)
    POST /cache/invalidate   drop one key (both tiers) or a substring pattern (memory tier)
"""

from fastapi import APIRouter, Response

from channel_cache.application.api.dependencies import ServiceDep
from channel_cache.application.api.models import InvalidateRequest, InvalidateResponse, MetricsResponse
from channel_cache.infrastructure.monitoring import get_metrics_collector

router = APIRouter(tags=["Admin"])


@router.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    collector = get_metrics_collector()
    metrics_text = collector.get_prometheus_metrics()
    content_type = collector.get_content_type()

    return Response(content=metrics_text, media_type=content_type)


@router.get("/metrics/summary", response_model=MetricsResponse)
async def get_metrics_summary(service: ServiceDep):
    """
    Smoothed latency / error rate (global and per operation), cache hit
    rate and tier statistics. Threshold breaches are logged and listed
    under ``warnings``.
    """
    return MetricsResponse(**service.metrics())


@router.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate_cache(body: InvalidateRequest, service: ServiceDep):
    if body.key is not None:
        removed = await service.invalidate(body.key)
        return InvalidateResponse(target=body.key, mode="key", removed=int(removed))

    removed = await service.invalidate_resource(body.pattern)
    return InvalidateResponse(target=body.pattern, mode="pattern", removed=removed)
