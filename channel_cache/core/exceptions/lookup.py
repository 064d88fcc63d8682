"""
Lookup Exceptions

The service reports absent records as a normal empty result. These
exceptions exist for the HTTP edge, which renders them as 404.
"""

from channel_cache.core.exceptions.base import ChannelCacheError


class NotFoundError(ChannelCacheError):
    """Base class for absent-resource errors."""
    pass


class ChannelNotFoundError(NotFoundError):
    """Raised by the API layer when a channel id has no record."""
    pass
