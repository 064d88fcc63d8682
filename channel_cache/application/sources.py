"""
Channel Fetch Collaborator

The service never queries storage itself. On a cache miss it calls a
ChannelSource with a backend-agnostic ChannelQuery (predicates, window,
sort) and gets back records plus a total count.

InMemoryChannelSource evaluates the predicates against plain dict
records. It backs the default application and the tests; production
deployments pass their own ChannelSource to create_app().
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import orjson

from channel_cache.core.config.constants import POPULARITY_SORT, RELEVANCE_SORT, Stage
from channel_cache.core.exceptions import ConfigurationError, InvalidArgumentError
from channel_cache.core.logging import get_logger, log_stage
from channel_cache.query.filters import QueryFilter

logger = get_logger(__name__)

ChannelRecord = dict[str, Any]

# Relevance weights for text search
TITLE_WEIGHT = 3
TAG_WEIGHT = 2
DESCRIPTION_WEIGHT = 1

_METRIC_FIELDS = (
    "subscriberCount",
    "growthRate7d",
    "growthRate30d",
    "postsPerDay",
    "lastPostAt",
    "engagementScore",
)


@dataclass(frozen=True)
class ChannelQuery:
    """
    Backend-agnostic fetch request.

    Attributes:
        filter: Conjunctive filter (always includes the active predicate)
        skip: Number of matching records to skip
        limit: Maximum number of records to return
        sort: (field, "asc"|"desc") pairs, applied left to right
        text: Search text (search queries only)
    """

    filter: QueryFilter
    skip: int = 0
    limit: int = 20
    sort: tuple[tuple[str, str], ...] = POPULARITY_SORT
    text: str | None = None


@dataclass
class FetchResult:
    items: list[ChannelRecord] = field(default_factory=list)
    total: int = 0


@runtime_checkable
class ChannelSource(Protocol):
    """Authoritative channel data, consulted only on cache miss."""

    async def find_channels(self, query: ChannelQuery) -> FetchResult:
        ...

    async def search_channels(self, query: ChannelQuery) -> FetchResult:
        ...

    async def find_channel(self, channel_id: str) -> ChannelRecord | None:
        ...

    async def find_similar(self, record: Mapping[str, Any], limit: int) -> list[ChannelRecord]:
        ...


def relevance_score(record: Mapping[str, Any], text: str) -> int:
    """
    Weighted case-insensitive match score.

    title contains text: +3, any tag contains text: +2, description contains text: +1
    """
    needle = text.strip().lower()
    if not needle:
        return 0

    score = 0
    if needle in str(record.get("title") or "").lower():
        score += TITLE_WEIGHT
    if any(needle in str(tag).lower() for tag in record.get("tags") or ()):
        score += TAG_WEIGHT
    if needle in str(record.get("description") or "").lower():
        score += DESCRIPTION_WEIGHT
    return score


def _sort_records(
    records: list[ChannelRecord],
    sort: Iterable[tuple[str, str]],
    scores: Mapping[int, int] | None = None,
) -> list[ChannelRecord]:
    # Stable sorts applied from the least to the most significant key
    ordered = list(records)
    for sort_field, direction in reversed(tuple(sort)):
        if sort_field == "relevance":
            def key(record, _scores=scores or {}):
                return _scores.get(id(record), 0)
        else:
            def key(record, _field=sort_field):
                value = record.get(_field)
                return (value is not None, value if value is not None else 0)
        ordered.sort(key=key, reverse=direction == "desc")
    return ordered


def _present(record: Mapping[str, Any]) -> ChannelRecord:
    presented = dict(record)
    presented["metrics"] = {name: record.get(name) for name in _METRIC_FIELDS}
    return presented


class InMemoryChannelSource:
    """
    ChannelSource over a list of dict records.

    Usage:
        source = InMemoryChannelSource([{"id": "1", "title": "Tech Daily", ...}])
        result = await source.find_channels(ChannelQuery(filter=QueryFilter()))
    """

    def __init__(self, records: Iterable[Mapping[str, Any]] | None = None):
        self._records: list[ChannelRecord] = [dict(record) for record in records or ()]

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryChannelSource":
        """
        Load records from a JSON file holding a list of channel objects.

        Raises:
            ConfigurationError: If the file is missing or not a JSON list
        """
        seed_path = Path(path)
        try:
            data = orjson.loads(seed_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise ConfigurationError.from_exception(e, message=f"Cannot load channel seed file {seed_path}")

        if not isinstance(data, list):
            raise ConfigurationError(
                "Channel seed file must contain a JSON list",
                details={"path": str(seed_path)},
            )

        log_stage(logger, Stage.INITIALIZATION, "Channel seed loaded", path=str(seed_path), records=len(data))
        return cls(data)

    def add(self, record: Mapping[str, Any]) -> None:
        self._records.append(dict(record))

    def __len__(self) -> int:
        return len(self._records)

    async def find_channels(self, query: ChannelQuery) -> FetchResult:
        matching = [record for record in self._records if query.filter.matches(record)]
        ordered = _sort_records(matching, query.sort)
        window = ordered[query.skip:query.skip + query.limit]
        return FetchResult(items=[_present(record) for record in window], total=len(matching))

    async def search_channels(self, query: ChannelQuery) -> FetchResult:
        if not query.text or not query.text.strip():
            raise InvalidArgumentError("Search query is required", details={"field": "q"})

        scores: dict[int, int] = {}
        matching = []
        for record in self._records:
            if not query.filter.matches(record):
                continue
            score = relevance_score(record, query.text)
            if score > 0:
                scores[id(record)] = score
                matching.append(record)

        ordered = _sort_records(matching, query.sort or RELEVANCE_SORT, scores)
        window = ordered[query.skip:query.skip + query.limit]
        return FetchResult(items=[_present(record) for record in window], total=len(matching))

    async def find_channel(self, channel_id: str) -> ChannelRecord | None:
        for record in self._records:
            if str(record.get("id")) == str(channel_id):
                return _present(record)
        return None

    async def find_similar(self, record: Mapping[str, Any], limit: int) -> list[ChannelRecord]:
        category = record.get("category")
        if category is None:
            return []

        candidates = [
            candidate
            for candidate in self._records
            if candidate.get("category") == category
            and candidate.get("isActive") is True
            and str(candidate.get("id")) != str(record.get("id"))
        ]
        ordered = _sort_records(candidates, POPULARITY_SORT)
        return [_present(candidate) for candidate in ordered[:limit]]
