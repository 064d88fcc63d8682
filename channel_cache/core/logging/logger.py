#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for the read path with:
- Thread ID correlation for request tracing
- Stage numbering for cache lookup / fetch / populate flow
- JSON formatting for log aggregation
- Automatic credential redaction (remote tier tokens never reach logs)
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from channel_cache.core.config.settings import get_settings

# Context variable for thread ID (request-local storage)
thread_id_ctx: ContextVar[str | None] = ContextVar("thread_id", default=None)

_BEARER_PATTERN = re.compile(r"\bBearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_SECRET_PARAM_PATTERN = re.compile(r"\b(token|password|secret)=([^\s&]+)", re.IGNORECASE)
_URL_CREDENTIALS_PATTERN = re.compile(r"(\w+://)([^:/@\s]*):([^@\s]+)@")


def add_thread_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add thread ID to log event from context variable.

    STAGE-L.1: Thread ID injection
    """
    thread_id = thread_id_ctx.get()
    if thread_id and "thread_id" not in event_dict:
        event_dict["thread_id"] = thread_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secret(text: str) -> str:
    """
    Mask credentials that can leak through error messages.

    Patterns redacted:
    - Authorization bearer tokens
    - token= / password= / secret= query fragments
    - user:password@ in connection URLs
    """
    text = _BEARER_PATTERN.sub("Bearer [REDACTED]", text)
    text = _SECRET_PARAM_PATTERN.sub(r"\1=[REDACTED]", text)
    text = _URL_CREDENTIALS_PATTERN.sub(r"\1\2:[REDACTED]@", text)
    return text


def redact_credentials(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact credentials from the event message and from string fields.

    STAGE-L.3: Credential redaction
    """
    for field, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[field] = redact_secret(value)
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Upper-case the log level name.

    STAGE-L.4: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_thread_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_credentials,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage="2.1")
    """
    return structlog.get_logger(name)


def set_thread_id(thread_id: str) -> None:
    """
    Set thread ID in context for the current request.

    This should be called at the start of each request to enable
    thread ID correlation across all log entries.
    """
    thread_id_ctx.set(thread_id)


def get_thread_id() -> str | None:
    """Get current thread ID from context."""
    return thread_id_ctx.get()


def clear_thread_id() -> None:
    """
    Clear thread ID from context.

    STAGE-6: Thread ID context cleanup
    """
    thread_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (e.g., Stage.MEMORY_LOOKUP, "2.1")
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, Stage.MEMORY_LOOKUP, "Memory cache hit", cache_key="channels:...")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=str(stage), **kwargs)
