"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the channel discovery read path.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for resource prefixes and timer labels
- Type-safe enums for stage identifiers and cache tiers
- Header names shared by the service and the HTTP edge
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Read-path stages used to tag log events.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        log_stage(logger, Stage.MEMORY_LOOKUP, "Memory cache hit", cache_key=key)
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    REQUEST_VALIDATION = "1.0_REQUEST_VALIDATION"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    MEMORY_LOOKUP = "2.1_MEMORY_LOOKUP"
    REMOTE_LOOKUP = "2.2_REMOTE_LOOKUP"
    CACHE_POPULATE = "2.3_CACHE_POPULATE"
    CACHE_INVALIDATE = "2.4_CACHE_INVALIDATE"
    CACHE_SWEEP = "2.5_CACHE_SWEEP"
    SOURCE_FETCH = "3.0_SOURCE_FETCH"
    CLEANUP = "6.0_CLEANUP"

    REMOTE_TIER = "KV_REMOTE_TIER"
    PERFORMANCE = "P_PERFORMANCE_TRACKING"

    def __str__(self) -> str:
        return self.value


class RemoteBackend(str, Enum):
    """Remote tier transport selection."""

    AUTO = "auto"
    REST = "rest"
    REDIS = "redis"
    NONE = "none"


# ============================================================================
# Resource Prefixes (cache key namespaces)
# ============================================================================

PREFIX_CHANNELS = "channels"
PREFIX_SEARCH = "search"
PREFIX_CHANNEL_DETAIL = "channel"
PREFIX_JOIN_LINK = "join"

# ============================================================================
# Performance Timer Labels
# ============================================================================

TIMER_CHANNELS_LIST = "channels-get"
TIMER_CHANNELS_SEARCH = "channels-search"
TIMER_CHANNEL_DETAIL = "channel-detail"
TIMER_JOIN_LINK = "channel-join"

# ============================================================================
# Query Shaping
# ============================================================================

SIMILAR_CHANNELS_LIMIT = 5
TELEGRAM_LINK_BASE = "https://t.me/"

# Popularity ordering for unfiltered and filtered listings
POPULARITY_SORT = (("subscriberCount", "desc"), ("growthRate7d", "desc"))
RELEVANCE_SORT = (("relevance", "desc"),)

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_CACHE_CONTROL = "Cache-Control"
HEADER_CACHE_STATUS = "X-Cache"
HEADER_THREAD_ID = "X-Thread-ID"

CACHE_STATUS_HIT = "HIT"
CACHE_STATUS_MISS = "MISS"
