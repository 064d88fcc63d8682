"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import FailingBackend, FakeClock, InMemoryBackend, SlowBackend
from .channel_factory import ChannelFactory

__all__ = ["ChannelFactory", "FailingBackend", "FakeClock", "InMemoryBackend", "SlowBackend"]
