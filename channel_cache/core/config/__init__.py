"""
Configuration Module

Centralized, type-safe configuration for the channel discovery read path.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Resource prefixes, timer labels, header names, stage enum

Usage:
------
```python
from channel_cache.core.config import get_settings
from channel_cache.core.config.constants import PREFIX_CHANNELS, Stage

settings = get_settings()
ttl = settings.cache.CACHE_TTL_CHANNELS
```
"""

from channel_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
