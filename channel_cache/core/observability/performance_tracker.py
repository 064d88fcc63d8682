"""
Per-Operation Performance Tracking

This module times read-path operations (channel listing, search, detail,
join link) and folds every sample into a per-operation running metric
using an exponential moving average.

Architectural Decision: explicit start/end timers plus a context manager
- start_timer/end_timer for call sites that cannot wrap a block
- track() context manager for automatic success/failure capture
- Monotonic clock (time.perf_counter) for durations
- threading.Lock around the metric map: safe for concurrent callers
- Optional Prometheus collector fed with every recorded sample

Moving Average:
    avg' = sample                        if avg == 0
    avg' = avg * (1 - alpha) + sample * alpha   otherwise

    The error rate uses the same update with sample 0 (success) or
    100 (failure), so it reads as a smoothed percentage.

Usage:
    tracker = PerformanceTracker()

    tracker.start_timer("channels-get")
    ...
    duration_ms = tracker.end_timer("channels-get", success=True)

    with tracker.track("channels-search"):
        await service.search(...)

    snapshot = tracker.get_metrics()
"""

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from channel_cache.core.config.constants import Stage
from channel_cache.core.config.settings import get_settings
from channel_cache.core.logging import get_logger, log_stage

if TYPE_CHECKING:
    from channel_cache.infrastructure.monitoring import MetricsCollector

logger = get_logger(__name__)


@dataclass
class RunningMetric:
    """
    Smoothed latency and error rate for one operation key.

    Attributes:
        avg_latency_ms: Exponential moving average of durations
        error_rate_percent: Exponential moving average of 0/100 outcomes
        sample_count: Number of samples folded in (informational)
    """

    avg_latency_ms: float = 0.0
    error_rate_percent: float = 0.0
    sample_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgLatencyMs": round(self.avg_latency_ms, 3),
            "errorRatePercent": round(self.error_rate_percent, 3),
            "sampleCount": self.sample_count,
        }


def update_moving_average(current: float, sample: float, alpha: float) -> float:
    """
    Fold one sample into an exponential moving average.

    A current value of exactly 0 is treated as "no history" and the
    sample is adopted as-is.
    """
    if current == 0:
        return sample
    return current * (1 - alpha) + sample * alpha


class PerformanceTracker:
    """
    Process-wide per-operation timing and moving-average metrics.

    Lifecycle: a RunningMetric is created lazily the first time a key
    records a sample and lives for the lifetime of the tracker.
    """

    def __init__(
        self,
        smoothing_factor: float | None = None,
        clock: Callable[[], float] = time.perf_counter,
        metrics: "MetricsCollector | None" = None,
    ):
        """
        Initialize the tracker.

        Args:
            smoothing_factor: EMA alpha (default: PERF_SMOOTHING_FACTOR)
            clock: Monotonic clock returning seconds
            metrics: Prometheus collector receiving every sample (optional)
        """
        settings = get_settings().performance
        self._alpha = smoothing_factor if smoothing_factor is not None else settings.PERF_SMOOTHING_FACTOR
        self._latency_warn_ms = settings.PERF_LATENCY_WARN_MS
        self._error_rate_warn = settings.PERF_ERROR_RATE_WARN_PERCENT
        self._hit_rate_warn = settings.PERF_HIT_RATE_WARN_PERCENT
        self._clock = clock
        self._collector = metrics

        self._start_times: dict[str, float] = {}
        self._metrics: dict[str, RunningMetric] = {}
        self._lock = threading.Lock()

    @property
    def smoothing_factor(self) -> float:
        return self._alpha

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def start_timer(self, key: str) -> None:
        """Record a start marker for an operation label (overwrites any previous one)."""
        with self._lock:
            self._start_times[key] = self._clock()

    def end_timer(self, key: str, success: bool = True) -> float:
        """
        Stop the timer for ``key`` and record the sample.

        Returns:
            Elapsed milliseconds, or 0 when ``key`` was never started
            (no side effect in that case).
        """
        with self._lock:
            started = self._start_times.pop(key, None)
            if started is None:
                return 0
            duration_ms = (self._clock() - started) * 1000
            self._fold(key, duration_ms, success)

        self._export(key, duration_ms, success)
        return duration_ms

    def record(self, key: str, duration_ms: float, success: bool = True) -> None:
        """Fold an externally measured sample into ``key``'s metric."""
        with self._lock:
            self._fold(key, duration_ms, success)
        self._export(key, duration_ms, success)

    @contextmanager
    def track(self, key: str) -> Iterator[None]:
        """
        Time the wrapped block and record it under ``key``.

        The sample is recorded as a failure when an exception escapes.
        Unlike start_timer/end_timer this keeps its start time locally,
        so concurrent blocks with the same key do not overwrite each other.
        """
        started = self._clock()
        success = False
        try:
            yield
            success = True
        finally:
            duration_ms = (self._clock() - started) * 1000
            self.record(key, duration_ms, success)
            log_stage(
                logger,
                Stage.PERFORMANCE,
                "Operation timed",
                level="debug",
                operation=key,
                duration_ms=round(duration_ms, 3),
                success=success,
            )

    def _fold(self, key: str, duration_ms: float, success: bool) -> None:
        # Caller holds self._lock
        metric = self._metrics.get(key)
        if metric is None:
            metric = RunningMetric()
            self._metrics[key] = metric

        metric.avg_latency_ms = update_moving_average(metric.avg_latency_ms, duration_ms, self._alpha)
        metric.error_rate_percent = update_moving_average(
            metric.error_rate_percent, 0.0 if success else 100.0, self._alpha
        )
        metric.sample_count += 1

    def _export(self, key: str, duration_ms: float, success: bool) -> None:
        if self._collector is not None:
            self._collector.record_operation(key, duration_ms / 1000, success)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def get_metric(self, key: str) -> RunningMetric | None:
        """Return a copy of one operation's metric, or None if never recorded."""
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                return None
            return RunningMetric(metric.avg_latency_ms, metric.error_rate_percent, metric.sample_count)

    def get_metrics(self, cache_hit_rate: float = 0.0) -> dict[str, Any]:
        """
        Global snapshot: every tracked key's metric averaged uniformly.

        Keys are not weighted by call volume.

        Args:
            cache_hit_rate: Hit rate percentage supplied by the cache layer

        Returns:
            Dict with apiResponseTime, errorRate, cacheHitRate, trackedOperations
        """
        with self._lock:
            count = len(self._metrics)
            latency_total = sum(m.avg_latency_ms for m in self._metrics.values())
            error_total = sum(m.error_rate_percent for m in self._metrics.values())

        if count == 0:
            return {
                "apiResponseTime": 0.0,
                "errorRate": 0.0,
                "cacheHitRate": cache_hit_rate,
                "trackedOperations": 0,
            }

        return {
            "apiResponseTime": latency_total / count,
            "errorRate": error_total / count,
            "cacheHitRate": cache_hit_rate,
            "trackedOperations": count,
        }

    def get_operation_metrics(self) -> dict[str, dict[str, Any]]:
        """Per-operation breakdown for the metrics endpoint."""
        with self._lock:
            return {key: metric.to_dict() for key, metric in self._metrics.items()}

    def check_performance_warnings(self, cache_hit_rate: float = 0.0) -> list[str]:
        """
        Log a warning for every breached threshold.

        Returns:
            Names of the breached thresholds ("latency", "error_rate", "cache_hit_rate")
        """
        snapshot = self.get_metrics(cache_hit_rate)
        breached = []

        if snapshot["apiResponseTime"] > self._latency_warn_ms:
            breached.append("latency")
            log_stage(
                logger,
                Stage.PERFORMANCE,
                "High API response time",
                level="warning",
                avg_latency_ms=round(snapshot["apiResponseTime"], 2),
                threshold_ms=self._latency_warn_ms,
            )

        if snapshot["errorRate"] > self._error_rate_warn:
            breached.append("error_rate")
            log_stage(
                logger,
                Stage.PERFORMANCE,
                "High error rate",
                level="warning",
                error_rate_percent=round(snapshot["errorRate"], 2),
                threshold_percent=self._error_rate_warn,
            )

        if 0 < cache_hit_rate < self._hit_rate_warn:
            breached.append("cache_hit_rate")
            log_stage(
                logger,
                Stage.PERFORMANCE,
                "Low cache hit rate",
                level="warning",
                cache_hit_rate=round(cache_hit_rate, 2),
                threshold_percent=self._hit_rate_warn,
            )

        return breached

    def reset(self) -> None:
        """Drop all timers and metrics (tests and admin resets)."""
        with self._lock:
            self._start_times.clear()
            self._metrics.clear()
