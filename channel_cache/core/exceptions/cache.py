"""
Cache-Related Exceptions

Errors related to the memory and remote cache tiers.
"""

from channel_cache.core.exceptions.base import ChannelCacheError


class CacheError(ChannelCacheError):
    """Base exception for cache-related errors."""
    pass


class RemoteCacheUnavailableError(CacheError):
    """
    The remote key-value tier could not serve a request.

    Never propagated to callers: the remote client wraps it in a
    RemoteResult and the tiered cache treats it as a miss.

    Common causes:
    - Endpoint unreachable or timed out
    - Authentication rejected
    - Non-2xx response or malformed payload
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded for the remote tier."""
    pass
