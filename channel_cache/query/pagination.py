"""
Paginator

Page window and pagination metadata from page/limit/total.

Invariants:
    skip        = (page - 1) * limit
    totalPages  = ceil(totalItems / limit)
    hasPrev     = page > 1
    hasNext     = skip + returnedCount < totalItems
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from channel_cache.core.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict[str, Any]:
        """Wire shape (camelCase keys)."""
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


def _require_positive(name: str, value: int) -> None:
    if value < 1:
        raise InvalidArgumentError(f"{name} must be >= 1", details={"field": name, "value": value})


def compute_skip(page: int, limit: int) -> int:
    """Offset of the first item on ``page``."""
    _require_positive("page", page)
    _require_positive("limit", limit)
    return (page - 1) * limit


def paginate(page: int, limit: int, total_items: int, returned_count: int) -> Pagination:
    """
    Compute pagination metadata.

    STAGE-4.0: Pagination

    Raises:
        InvalidArgumentError: If page < 1 or limit < 1
    """
    skip = compute_skip(page, limit)
    return Pagination(
        current_page=page,
        total_pages=math.ceil(total_items / limit),
        total_items=total_items,
        has_next=skip + returned_count < total_items,
        has_prev=page > 1,
    )


def parse_page_params(
    raw_params: Mapping[str, Any],
    default_limit: int = 20,
    max_limit: int = 100,
) -> tuple[int, int]:
    """
    Read ``page`` and ``limit`` from raw request parameters.

    Missing or blank values take the defaults (page 1, ``default_limit``).

    Raises:
        InvalidArgumentError: Non-integer values, values below 1, or limit above ``max_limit``
    """
    page = _parse_int(raw_params, "page", 1)
    limit = _parse_int(raw_params, "limit", default_limit)

    _require_positive("page", page)
    _require_positive("limit", limit)
    if limit > max_limit:
        raise InvalidArgumentError(
            f"limit must be <= {max_limit}",
            details={"field": "limit", "value": limit, "max": max_limit},
        )
    return page, limit


def _parse_int(raw_params: Mapping[str, Any], name: str, default: int) -> int:
    value = raw_params.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be an integer", details={"field": name, "value": value})
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidArgumentError(
            f"{name} must be an integer",
            details={"field": name, "value": value},
        ) from None
