#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Prometheus-compatible counters and histograms for the read path:
- cache hits per tier, misses
- remote tier failures per operation
- operation outcomes, errors and latency per timer label

Metrics are registered once on the default registry and exported at
``GET /metrics`` in the Prometheus text format.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from channel_cache.core.config.settings import get_settings
from channel_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Cache metrics
CACHE_HITS = Counter(
    'channel_cache_hits_total',
    'Cache lookups answered by a tier',
    ['tier']
)

CACHE_MISSES = Counter(
    'channel_cache_misses_total',
    'Cache lookups answered by no tier'
)

REMOTE_FAILURES = Counter(
    'channel_cache_remote_failures_total',
    'Remote tier calls absorbed as unavailable',
    ['operation']
)

# Operation metrics
OPERATION_COUNT = Counter(
    'channel_cache_operations_total',
    'Timed read-path operations',
    ['operation', 'status']
)

OPERATION_ERRORS = Counter(
    'channel_cache_operation_errors_total',
    'Timed read-path operations that failed',
    ['operation']
)

OPERATION_DURATION = Histogram(
    'channel_cache_operation_duration_seconds',
    'Read-path operation duration in seconds',
    ['operation'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

# App info
APP_INFO = Info(
    'channel_cache_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()

        metrics.record_cache_hit("memory")
        metrics.record_operation("channels-get", 0.012, success=True)

        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_cache_hit(self, tier: str) -> None:
        CACHE_HITS.labels(tier=tier).inc()

    def record_cache_miss(self) -> None:
        CACHE_MISSES.inc()

    def record_remote_failure(self, operation: str) -> None:
        REMOTE_FAILURES.labels(operation=operation).inc()

    # =========================================================================
    # Operation Metrics
    # =========================================================================

    def record_operation(self, operation: str, duration_seconds: float, success: bool) -> None:
        """Record one timed operation: outcome, latency and (on failure) an error."""
        OPERATION_COUNT.labels(operation=operation, status="success" if success else "error").inc()
        OPERATION_DURATION.labels(operation=operation).observe(duration_seconds)
        if not success:
            OPERATION_ERRORS.labels(operation=operation).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
