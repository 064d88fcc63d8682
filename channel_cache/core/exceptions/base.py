"""
Base Exception Class

This module contains the base exception class that every read-path
exception inherits from. Specialized exceptions live in their themed
modules (validation, cache, lookup).
"""

from typing import Any


class ChannelCacheError(Exception):
    """
    Base exception for all channel read-path errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling at the HTTP edge
    - Thread ID correlation
    - Structured error logging

    Attributes:
        message: Error message
        thread_id: Thread ID for correlation (if available)
        details: Additional error details (dict)

    Example:
        raise InvalidArgumentError(
            "limit must be >= 1",
            details={"field": "limit", "value": 0}
        )
    """

    def __init__(
        self, message: str, thread_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.thread_id = thread_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message, thread_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "thread_id": self.thread_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "ChannelCacheError":
        """Add a suggestion to help callers fix the error (chainable)."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "ChannelCacheError":
        """Add additional context to the error details (chainable)."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        thread_id_str = f", thread_id='{self.thread_id}'" if self.thread_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{thread_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        thread_id: str | None = None,
        **details
    ) -> "ChannelCacheError":
        """
        Create an error from another exception.

        Useful for wrapping third-party exceptions (httpx, redis) with context.

        Example:
            >>> try:
            ...     await client.get(key)
            ... except RedisError as e:
            ...     error = RemoteCacheUnavailableError.from_exception(e, backend="redis")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, thread_id=thread_id, details=error_details)


class ConfigurationError(ChannelCacheError):
    """Raised when configuration is invalid or missing."""
    pass
