"""
Cache Infrastructure

Memory tier, optional remote tier, the tiered cache that coordinates
them, and the cache key codec.
"""

from .cache_manager import CacheLookup, CacheObserver, TieredCache
from .key_codec import generate_key, normalize_params
from .memory_cache import CacheEntry, MemoryCache
from .remote_client import (
    KeyValueBackend,
    RedisKeyValueBackend,
    RemoteCacheClient,
    RemoteResult,
    RemoteStatus,
    RestKeyValueBackend,
    build_remote_client,
)

__all__ = [
    "CacheEntry",
    "CacheLookup",
    "CacheObserver",
    "KeyValueBackend",
    "MemoryCache",
    "RedisKeyValueBackend",
    "RemoteCacheClient",
    "RemoteResult",
    "RemoteStatus",
    "RestKeyValueBackend",
    "TieredCache",
    "build_remote_client",
    "generate_key",
    "normalize_params",
]
