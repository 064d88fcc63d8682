"""
Query Filter Builder

Turns raw request parameters (query-string strings or already-typed
values) into a QueryFilter, and a QueryFilter into a backend-agnostic
list of predicates.

Every filter is an AND clause. The first predicate is always
``isActive eq True``.

Activity buckets on the ``postsPerDay`` measure:
    low    -> [0, 1)
    medium -> [1, 5]     (1 and 5 are both medium)
    high   -> (5, inf)
"""

import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from channel_cache.core.exceptions import InvalidArgumentError
from channel_cache.infrastructure.cache.key_codec import normalize_params


class ActivityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PredicateOp(str, Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


_OPERATORS: dict[PredicateOp, Callable[[Any, Any], bool]] = {
    PredicateOp.EQ: operator.eq,
    PredicateOp.GT: operator.gt,
    PredicateOp.GTE: operator.ge,
    PredicateOp.LT: operator.lt,
    PredicateOp.LTE: operator.le,
}


@dataclass(frozen=True)
class Predicate:
    """One ``field op value`` clause."""

    field: str
    op: PredicateOp
    value: Any

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        """A record lacking the field, or holding an incomparable value, does not match."""
        actual = record.get(self.field)
        if actual is None:
            return False
        try:
            return bool(_OPERATORS[self.op](actual, self.value))
        except TypeError:
            return False

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "op": self.op.value, "value": self.value}


ACTIVE_PREDICATE = Predicate("isActive", PredicateOp.EQ, True)

ACTIVITY_RANGES: dict[ActivityLevel, tuple[Predicate, ...]] = {
    ActivityLevel.LOW: (
        Predicate("postsPerDay", PredicateOp.GTE, 0),
        Predicate("postsPerDay", PredicateOp.LT, 1),
    ),
    ActivityLevel.MEDIUM: (
        Predicate("postsPerDay", PredicateOp.GTE, 1),
        Predicate("postsPerDay", PredicateOp.LTE, 5),
    ),
    ActivityLevel.HIGH: (
        Predicate("postsPerDay", PredicateOp.GT, 5),
    ),
}


def classify_activity(posts_per_day: float) -> ActivityLevel:
    """
    Return the activity bucket for a posts-per-day value.

    Raises:
        InvalidArgumentError: If the value is negative
    """
    if posts_per_day < 0:
        raise InvalidArgumentError(
            "postsPerDay must be >= 0",
            details={"field": "postsPerDay", "value": posts_per_day},
        )
    if posts_per_day < 1:
        return ActivityLevel.LOW
    if posts_per_day <= 5:
        return ActivityLevel.MEDIUM
    return ActivityLevel.HIGH


@dataclass(frozen=True)
class QueryFilter:
    """
    Typed, request-scoped filter. Unset fields are None and add no clause.
    """

    category: str | None = None
    language: str | None = None
    min_subscribers: int | None = None
    max_subscribers: int | None = None
    activity: ActivityLevel | None = None

    def predicates(self) -> list[Predicate]:
        clauses = [ACTIVE_PREDICATE]
        if self.category is not None:
            clauses.append(Predicate("category", PredicateOp.EQ, self.category))
        if self.language is not None:
            clauses.append(Predicate("language", PredicateOp.EQ, self.language))
        if self.min_subscribers is not None:
            clauses.append(Predicate("subscriberCount", PredicateOp.GTE, self.min_subscribers))
        if self.max_subscribers is not None:
            clauses.append(Predicate("subscriberCount", PredicateOp.LTE, self.max_subscribers))
        if self.activity is not None:
            clauses.extend(ACTIVITY_RANGES[self.activity])
        return clauses

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(predicate.evaluate(record) for predicate in self.predicates())

    def cache_params(self) -> dict[str, Any]:
        """Parameters contributed to the cache key, absent fields stripped."""
        return normalize_params({
            "category": self.category,
            "language": self.language,
            "minSubscribers": self.min_subscribers,
            "maxSubscribers": self.max_subscribers,
            "activity": self.activity.value if self.activity else None,
        })

    @property
    def is_empty(self) -> bool:
        return not self.cache_params()


class FilterBuilder:
    """
    Builds a QueryFilter from raw parameters.

    STAGE-1.1: Filter normalization

    Recognized names: category, language, minSubscribers, maxSubscribers,
    activity. Other names are ignored. Absent, None, or blank values are
    treated as not supplied.

    Usage:
        query_filter = FilterBuilder().build(request.query_params)
    """

    def build(self, raw_params: Mapping[str, Any]) -> QueryFilter:
        """
        Raises:
            InvalidArgumentError: Non-integer or negative subscriber bound,
                minSubscribers > maxSubscribers, or unknown activity value
        """
        params = normalize_params(raw_params)

        min_subscribers = self._parse_bound(params, "minSubscribers")
        max_subscribers = self._parse_bound(params, "maxSubscribers")
        if (
            min_subscribers is not None
            and max_subscribers is not None
            and min_subscribers > max_subscribers
        ):
            raise InvalidArgumentError(
                "minSubscribers must not exceed maxSubscribers",
                details={"minSubscribers": min_subscribers, "maxSubscribers": max_subscribers},
            )

        return QueryFilter(
            category=self._parse_text(params, "category"),
            language=self._parse_text(params, "language"),
            min_subscribers=min_subscribers,
            max_subscribers=max_subscribers,
            activity=self._parse_activity(params),
        )

    @staticmethod
    def _parse_text(params: Mapping[str, Any], name: str) -> str | None:
        value = params.get(name)
        if value is None:
            return None
        return str(value).strip()

    @staticmethod
    def _parse_bound(params: Mapping[str, Any], name: str) -> int | None:
        value = params.get(name)
        if value is None:
            return None

        if isinstance(value, bool):
            raise InvalidArgumentError(f"{name} must be an integer", details={"field": name, "value": value})
        if isinstance(value, int):
            parsed = value
        else:
            try:
                parsed = int(str(value).strip())
            except ValueError:
                raise InvalidArgumentError(
                    f"{name} must be an integer",
                    details={"field": name, "value": value},
                ) from None

        if parsed < 0:
            raise InvalidArgumentError(f"{name} must be >= 0", details={"field": name, "value": parsed})
        return parsed

    @staticmethod
    def _parse_activity(params: Mapping[str, Any]) -> ActivityLevel | None:
        value = params.get("activity")
        if value is None:
            return None
        if isinstance(value, ActivityLevel):
            return value
        try:
            return ActivityLevel(str(value).strip().lower())
        except ValueError:
            raise InvalidArgumentError(
                "activity must be one of low, medium, high",
                details={"field": "activity", "value": value},
            ) from None


def build_filter(raw_params: Mapping[str, Any]) -> QueryFilter:
    """Shortcut for FilterBuilder().build(raw_params)."""
    return FilterBuilder().build(raw_params)
