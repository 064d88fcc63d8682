"""
Core Module

Foundational components: configuration, logging, exceptions, and
performance tracking.
"""

from .exceptions import (
    CacheError,
    ChannelCacheError,
    ChannelNotFoundError,
    ConfigurationError,
    InvalidArgumentError,
    RemoteCacheUnavailableError,
    ValidationError,
)
from .logging import (
    clear_thread_id,
    get_logger,
    get_thread_id,
    log_stage,
    set_thread_id,
    setup_logging,
)
from .observability import PerformanceTracker, RunningMetric

__all__ = [
    "setup_logging",
    "get_logger",
    "set_thread_id",
    "get_thread_id",
    "clear_thread_id",
    "log_stage",
    "ChannelCacheError",
    "ConfigurationError",
    "CacheError",
    "RemoteCacheUnavailableError",
    "ValidationError",
    "InvalidArgumentError",
    "ChannelNotFoundError",
    "PerformanceTracker",
    "RunningMetric",
]
