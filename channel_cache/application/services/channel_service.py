#!/usr/bin/env python3
"""
Channel Discovery Service

Composes the read path for the four channel resources:

    request params
        → FilterBuilder / page parsing      (STAGE-1, fails before the cache is touched)
        → generate_key(prefix, params)      (STAGE-2.0)
        → TieredCache memory → remote       (STAGE-2.1 / 2.2)
        → ChannelSource on miss             (STAGE-3)
        → paginate + populate both tiers    (STAGE-4 / 2.3)

Every operation is timed by the PerformanceTracker under a fixed label,
and returns a CachedResponse carrying the payload, whether it came from
cache, and the resource's CachePolicy (for Cache-Control headers).

Absent records are a normal None payload, never cached; the HTTP edge
renders them as 404.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from channel_cache.core.config.constants import (
    CACHE_STATUS_HIT,
    CACHE_STATUS_MISS,
    HEADER_CACHE_CONTROL,
    HEADER_CACHE_STATUS,
    POPULARITY_SORT,
    PREFIX_CHANNEL_DETAIL,
    PREFIX_CHANNELS,
    PREFIX_JOIN_LINK,
    PREFIX_SEARCH,
    RELEVANCE_SORT,
    SIMILAR_CHANNELS_LIMIT,
    TELEGRAM_LINK_BASE,
    TIMER_CHANNEL_DETAIL,
    TIMER_CHANNELS_LIST,
    TIMER_CHANNELS_SEARCH,
    TIMER_JOIN_LINK,
    Stage,
)
from channel_cache.core.config.settings import Settings, get_settings
from channel_cache.core.exceptions import InvalidArgumentError
from channel_cache.core.logging import get_logger, log_stage
from channel_cache.core.observability import PerformanceTracker
from channel_cache.infrastructure.cache import TieredCache, generate_key
from channel_cache.application.sources import ChannelQuery, ChannelSource
from channel_cache.query import FilterBuilder, QueryFilter, compute_skip, paginate, parse_page_params

logger = get_logger(__name__)

# Fields kept on each similar-channel entry
_SIMILAR_FIELDS = ("id", "title", "username", "subscriberCount", "category")


# =============================================================================
# RESPONSE TYPES
# =============================================================================


@dataclass(frozen=True)
class CachePolicy:
    """Cache namespace, TTL and stale-while-revalidate grace for one resource."""

    prefix: str
    ttl: int
    grace: int


@dataclass(frozen=True)
class CachedResponse:
    payload: Any
    cache_hit: bool
    policy: CachePolicy
    cache_key: str

    @property
    def found(self) -> bool:
        return self.payload is not None

    def headers(self) -> dict[str, str]:
        return build_cache_headers(self.policy, self.cache_hit)


def build_cache_headers(policy: CachePolicy, hit: bool) -> dict[str, str]:
    """
    Outward freshness headers mirroring the cache TTL.

    Returns:
        {"Cache-Control": "public, s-maxage=<ttl>, stale-while-revalidate=<grace>",
         "X-Cache": "HIT" | "MISS"}
    """
    return {
        HEADER_CACHE_CONTROL: f"public, s-maxage={policy.ttl}, stale-while-revalidate={policy.grace}",
        HEADER_CACHE_STATUS: CACHE_STATUS_HIT if hit else CACHE_STATUS_MISS,
    }


# =============================================================================
# SERVICE
# =============================================================================


class ChannelDiscoveryService:
    """
    Cached read operations over a ChannelSource.

    Usage:
        service = ChannelDiscoveryService(cache, tracker, source)

        response = await service.list_channels({"page": "2", "category": "tech"})
        response.payload      # {"channels": [...], "pagination": {...}}
        response.headers()    # Cache-Control / X-Cache
    """

    def __init__(
        self,
        cache: TieredCache,
        tracker: PerformanceTracker,
        source: ChannelSource,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        cache_settings = settings.cache
        pagination_settings = settings.pagination

        self._cache = cache
        self._tracker = tracker
        self._source = source
        self._filter_builder = FilterBuilder()
        self._default_limit = pagination_settings.DEFAULT_PAGE_LIMIT
        self._max_limit = pagination_settings.MAX_PAGE_LIMIT

        self.channels_policy = CachePolicy(
            PREFIX_CHANNELS, cache_settings.CACHE_TTL_CHANNELS, cache_settings.CACHE_SWR_CHANNELS
        )
        self.search_policy = CachePolicy(
            PREFIX_SEARCH, cache_settings.CACHE_TTL_SEARCH, cache_settings.CACHE_SWR_SEARCH
        )
        self.detail_policy = CachePolicy(
            PREFIX_CHANNEL_DETAIL, cache_settings.CACHE_TTL_CHANNEL_DETAIL, cache_settings.CACHE_SWR_CHANNEL_DETAIL
        )
        self.join_policy = CachePolicy(
            PREFIX_JOIN_LINK, cache_settings.CACHE_TTL_JOIN_LINK, cache_settings.CACHE_SWR_JOIN_LINK
        )

    @property
    def cache(self) -> TieredCache:
        return self._cache

    @property
    def tracker(self) -> PerformanceTracker:
        return self._tracker

    # -------------------------------------------------------------------------
    # Listing and search
    # -------------------------------------------------------------------------

    def _parse_listing(self, raw_params: Mapping[str, Any]) -> tuple[int, int, QueryFilter]:
        page, limit = parse_page_params(raw_params, self._default_limit, self._max_limit)
        query_filter = self._filter_builder.build(raw_params)
        return page, limit, query_filter

    async def list_channels(self, raw_params: Mapping[str, Any]) -> CachedResponse:
        """
        Paginated, filtered channel listing ordered by popularity.

        Raises:
            InvalidArgumentError: Malformed page, limit or filter values
        """
        with self._tracker.track(TIMER_CHANNELS_LIST):
            page, limit, query_filter = self._parse_listing(raw_params)
            policy = self.channels_policy
            key = generate_key(policy.prefix, {"page": page, "limit": limit, **query_filter.cache_params()})

            async def fetch() -> dict[str, Any]:
                query = ChannelQuery(
                    filter=query_filter,
                    skip=compute_skip(page, limit),
                    limit=limit,
                    sort=POPULARITY_SORT,
                )
                log_stage(logger, Stage.SOURCE_FETCH, "Fetching channels", cache_key=key)
                result = await self._source.find_channels(query)
                pagination = paginate(page, limit, result.total, len(result.items))
                return {"channels": result.items, "pagination": pagination.to_dict()}

            lookup = await self._cache.get_or_compute(key, policy.ttl, fetch)
            return CachedResponse(lookup.value, lookup.hit, policy, key)

    async def search_channels(self, raw_params: Mapping[str, Any]) -> CachedResponse:
        """
        Text search ranked by relevance only.

        Raises:
            InvalidArgumentError: Missing/blank ``q`` or malformed page, limit, filter values
        """
        with self._tracker.track(TIMER_CHANNELS_SEARCH):
            text = str(raw_params.get("q") or "").strip()
            if not text:
                raise InvalidArgumentError("Search query is required", details={"field": "q"})

            page, limit, query_filter = self._parse_listing(raw_params)
            policy = self.search_policy
            key = generate_key(
                policy.prefix,
                {"q": text, "page": page, "limit": limit, **query_filter.cache_params()},
            )

            async def fetch() -> dict[str, Any]:
                query = ChannelQuery(
                    filter=query_filter,
                    skip=compute_skip(page, limit),
                    limit=limit,
                    sort=RELEVANCE_SORT,
                    text=text,
                )
                log_stage(logger, Stage.SOURCE_FETCH, "Searching channels", cache_key=key)
                result = await self._source.search_channels(query)
                pagination = paginate(page, limit, result.total, len(result.items))
                return {"channels": result.items, "pagination": pagination.to_dict(), "searchQuery": text}

            lookup = await self._cache.get_or_compute(key, policy.ttl, fetch)
            return CachedResponse(lookup.value, lookup.hit, policy, key)

    # -------------------------------------------------------------------------
    # Single channel
    # -------------------------------------------------------------------------

    async def get_channel(self, channel_id: str) -> CachedResponse:
        """
        Channel detail with up to five similar channels from the same category.

        A missing channel yields payload None, which is not cached.
        """
        with self._tracker.track(TIMER_CHANNEL_DETAIL):
            policy = self.detail_policy
            key = generate_key(policy.prefix, {"id": channel_id})

            async def fetch() -> dict[str, Any] | None:
                log_stage(logger, Stage.SOURCE_FETCH, "Fetching channel detail", channel_id=channel_id)
                record = await self._source.find_channel(channel_id)
                if record is None:
                    return None

                similar = await self._source.find_similar(record, SIMILAR_CHANNELS_LIMIT)
                return {
                    **record,
                    "recentPosts": [],
                    "similarChannels": [
                        {name: channel.get(name) for name in _SIMILAR_FIELDS} for channel in similar
                    ],
                }

            lookup = await self._cache.get_or_compute(key, policy.ttl, fetch)
            return CachedResponse(lookup.value, lookup.hit, policy, key)

    async def get_join_link(self, channel_id: str) -> CachedResponse:
        """
        Public join link for a channel.

        Raises:
            InvalidArgumentError: If the channel is private or has no username
        """
        with self._tracker.track(TIMER_JOIN_LINK):
            policy = self.join_policy
            key = generate_key(policy.prefix, {"id": channel_id})

            async def fetch() -> dict[str, Any] | None:
                record = await self._source.find_channel(channel_id)
                if record is None:
                    return None

                if not record.get("isPublic"):
                    raise InvalidArgumentError(
                        "Cannot join private channel",
                        details={"channel_id": channel_id},
                    )

                username = str(record.get("username") or "").replace("@", "").strip()
                if not username:
                    raise InvalidArgumentError(
                        "Channel has no public username",
                        details={"channel_id": channel_id},
                    )

                return {"joinLink": f"{TELEGRAM_LINK_BASE}{username}", "channelTitle": record.get("title")}

            lookup = await self._cache.get_or_compute(key, policy.ttl, fetch)
            return CachedResponse(lookup.value, lookup.hit, policy, key)

    # -------------------------------------------------------------------------
    # Invalidation and metrics
    # -------------------------------------------------------------------------

    async def invalidate(self, key: str) -> bool:
        """Drop one cache key from both tiers."""
        return await self._cache.invalidate(key)

    async def invalidate_resource(self, pattern: str) -> int:
        """
        Drop every memory entry whose key contains ``pattern``.

        Raises:
            InvalidArgumentError: If pattern is blank (it would match every key)
        """
        if not pattern or not pattern.strip():
            raise InvalidArgumentError("pattern must not be empty", details={"field": "pattern"})
        return await self._cache.invalidate_by_pattern(pattern)

    def metrics(self) -> dict[str, Any]:
        """Performance snapshot, per-operation breakdown and cache statistics."""
        hit_rate = self._cache.hit_rate_percent()
        return {
            "performance": self._tracker.get_metrics(cache_hit_rate=hit_rate),
            "operations": self._tracker.get_operation_metrics(),
            "cache": self._cache.stats(),
            "warnings": self._tracker.check_performance_warnings(cache_hit_rate=hit_rate),
        }
