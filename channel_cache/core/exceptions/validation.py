"""
Validation Exceptions

Errors originating in caller input (pagination, filters, search query).
These are surfaced immediately, before the cache is touched.
"""

from channel_cache.core.exceptions.base import ChannelCacheError


class ValidationError(ChannelCacheError):
    """Base class for all input validation errors."""
    pass


class InvalidArgumentError(ValidationError):
    """
    Raised when a request argument is malformed or out of range.

    Common causes:
    - page < 1 or limit < 1
    - limit above the configured maximum
    - non-numeric subscriber bounds
    - unknown activity bucket
    - missing search query

    Example:
        raise InvalidArgumentError(
            "page must be >= 1",
            details={"field": "page", "value": 0}
        )
    """
    pass
