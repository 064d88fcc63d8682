"""
Unit Tests for Core Exceptions

Tests the read-path exception hierarchy and its helpers.
"""

import pytest

from channel_cache.core.exceptions import (
    CacheError,
    CacheSerializationError,
    ChannelCacheError,
    ChannelNotFoundError,
    ConfigurationError,
    InvalidArgumentError,
    NotFoundError,
    RemoteCacheUnavailableError,
    ValidationError,
)


@pytest.mark.unit
class TestChannelCacheError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = ChannelCacheError("Test message")
        assert str(error) == "Test message"
        assert error.message == "Test message"

    def test_base_error_default_values(self):
        error = ChannelCacheError("Test")
        assert error.details == {}  # Defaults to empty dict, not None
        assert error.thread_id is None

    def test_details_are_copied(self):
        """Mutating the error must not leak into the caller's dict."""
        details = {"field": "page"}
        error = ChannelCacheError("Test", details=details)
        error.with_context(value=0)

        assert details == {"field": "page"}
        assert error.details == {"field": "page", "value": 0}

    def test_to_dict(self):
        error = InvalidArgumentError("page must be >= 1", thread_id="t-1", details={"field": "page"})

        assert error.to_dict() == {
            "error_type": "InvalidArgumentError",
            "message": "page must be >= 1",
            "thread_id": "t-1",
            "details": {"field": "page"},
        }

    def test_with_suggestion_is_chainable(self):
        error = ConfigurationError("missing").with_suggestion("set REDIS_URL")

        assert isinstance(error, ConfigurationError)
        assert error.details["suggestion"] == "set REDIS_URL"

    def test_repr_includes_thread_and_details(self):
        error = ChannelCacheError("boom", thread_id="abc", details={"k": 1})

        text = repr(error)
        assert "ChannelCacheError" in text
        assert "thread_id='abc'" in text
        assert "'k': 1" in text

    def test_from_exception_wraps_original(self):
        original = ConnectionError("refused")

        error = RemoteCacheUnavailableError.from_exception(original, backend="redis")

        assert isinstance(error, RemoteCacheUnavailableError)
        assert error.message == "refused"
        assert error.details["original_error"] == "ConnectionError"
        assert error.details["backend"] == "redis"


@pytest.mark.unit
class TestHierarchy:
    """Handlers at the HTTP edge rely on these relationships."""

    @pytest.mark.parametrize(
        "error_cls, parent",
        [
            (InvalidArgumentError, ValidationError),
            (ValidationError, ChannelCacheError),
            (RemoteCacheUnavailableError, CacheError),
            (CacheSerializationError, CacheError),
            (CacheError, ChannelCacheError),
            (ChannelNotFoundError, NotFoundError),
            (NotFoundError, ChannelCacheError),
            (ConfigurationError, ChannelCacheError),
        ],
    )
    def test_inheritance(self, error_cls, parent):
        assert issubclass(error_cls, parent)

    def test_not_found_is_not_a_validation_error(self):
        assert not issubclass(ChannelNotFoundError, ValidationError)
