"""
Exception Module

Structured exception hierarchy for the channel read path.

Module Structure:
-----------------
- **base.py**: ChannelCacheError base class + ConfigurationError
- **validation.py**: caller input errors (InvalidArgumentError)
- **cache.py**: memory/remote tier errors
- **lookup.py**: absent-resource errors for the HTTP edge

Usage:
------
```python
from channel_cache.core.exceptions import InvalidArgumentError, RemoteCacheUnavailableError
```
"""

from channel_cache.core.exceptions.base import ChannelCacheError, ConfigurationError
from channel_cache.core.exceptions.cache import (
    CacheError,
    CacheSerializationError,
    RemoteCacheUnavailableError,
)
from channel_cache.core.exceptions.lookup import ChannelNotFoundError, NotFoundError
from channel_cache.core.exceptions.validation import InvalidArgumentError, ValidationError

__all__ = [
    # Base
    "ChannelCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheSerializationError",
    "RemoteCacheUnavailableError",
    # Lookup
    "NotFoundError",
    "ChannelNotFoundError",
    # Validation
    "ValidationError",
    "InvalidArgumentError",
]
