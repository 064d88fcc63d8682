from .channel_service import CachedResponse, CachePolicy, ChannelDiscoveryService, build_cache_headers

__all__ = ["CachedResponse", "CachePolicy", "ChannelDiscoveryService", "build_cache_headers"]
