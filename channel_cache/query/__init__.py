"""
Query Shaping

Filter building and pagination for channel listings and search.
"""

from .filters import (
    ACTIVE_PREDICATE,
    ACTIVITY_RANGES,
    ActivityLevel,
    FilterBuilder,
    Predicate,
    PredicateOp,
    QueryFilter,
    build_filter,
    classify_activity,
)
from .pagination import Pagination, compute_skip, paginate, parse_page_params

__all__ = [
    "ACTIVE_PREDICATE",
    "ACTIVITY_RANGES",
    "ActivityLevel",
    "FilterBuilder",
    "Pagination",
    "Predicate",
    "PredicateOp",
    "QueryFilter",
    "build_filter",
    "classify_activity",
    "compute_skip",
    "paginate",
    "parse_page_params",
]
