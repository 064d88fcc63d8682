#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
channel discovery read path. All tunables (TTLs, sweep period, remote tier
endpoint, smoothing factor, pagination bounds) live here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Grouped read-only views (settings.cache, settings.remote_cache, ...)
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from channel_cache.core.config.constants import RemoteBackend


class CacheSettings(BaseSettings):
    """
    Memory tier and per-resource TTL configuration.

    STAGE-2: Cache TTL configuration

    TTLs mirror the outward Cache-Control header for each resource.
    """

    CACHE_ENABLED: bool = Field(default=True, description="Enable read-path caching")
    CACHE_SWEEP_INTERVAL: float = Field(default=60.0, gt=0, description="Expired entry sweep period (seconds)")
    CACHE_L1_MAX_SIZE: int = Field(default=10000, gt=0, description="Memory tier max entries")

    CACHE_TTL_CHANNELS: int = Field(default=600, gt=0, description="Channel listing TTL (10 minutes)")
    CACHE_TTL_SEARCH: int = Field(default=300, gt=0, description="Search results TTL (5 minutes)")
    CACHE_TTL_CHANNEL_DETAIL: int = Field(default=900, gt=0, description="Channel detail TTL (15 minutes)")
    CACHE_TTL_JOIN_LINK: int = Field(default=3600, gt=0, description="Join link TTL (1 hour)")

    CACHE_SWR_CHANNELS: int = Field(default=30, ge=0, description="Listing stale-while-revalidate grace")
    CACHE_SWR_SEARCH: int = Field(default=30, ge=0, description="Search stale-while-revalidate grace")
    CACHE_SWR_CHANNEL_DETAIL: int = Field(default=60, ge=0, description="Detail stale-while-revalidate grace")
    CACHE_SWR_JOIN_LINK: int = Field(default=60, ge=0, description="Join link stale-while-revalidate grace")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RemoteCacheSettings(BaseSettings):
    """
    Optional remote key-value tier.

    STAGE-KV: Remote tier configuration

    Architectural Decision: the tier is silently disabled when no endpoint
    or credential is configured. "auto" prefers the REST interface when
    both URL and token are present, then Redis when REDIS_URL is present.
    """

    REMOTE_CACHE_BACKEND: RemoteBackend = Field(default=RemoteBackend.AUTO, description="Remote tier transport")
    KV_REST_API_URL: str | None = Field(default=None, description="Key-value REST endpoint")
    KV_REST_API_TOKEN: str | None = Field(default=None, description="Key-value REST bearer token")
    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REMOTE_CACHE_TIMEOUT: float = Field(default=2.0, gt=0, description="Remote call timeout (seconds)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    def resolve_backend(self) -> RemoteBackend:
        """Resolve "auto" into a concrete backend (or NONE when unconfigured)."""
        backend = self.REMOTE_CACHE_BACKEND
        rest_ready = bool(self.KV_REST_API_URL and self.KV_REST_API_TOKEN)
        redis_ready = bool(self.REDIS_URL)

        if backend == RemoteBackend.AUTO:
            if rest_ready:
                return RemoteBackend.REST
            if redis_ready:
                return RemoteBackend.REDIS
            return RemoteBackend.NONE
        if backend == RemoteBackend.REST and not rest_ready:
            return RemoteBackend.NONE
        if backend == RemoteBackend.REDIS and not redis_ready:
            return RemoteBackend.NONE
        return backend


class PerformanceSettings(BaseSettings):
    """
    Performance tracker configuration.

    STAGE-P: Moving-average smoothing and warning thresholds
    """

    PERF_SMOOTHING_FACTOR: float = Field(default=0.1, gt=0, le=1, description="EMA smoothing factor")
    PERF_LATENCY_WARN_MS: float = Field(default=500.0, description="Average latency warning threshold")
    PERF_ERROR_RATE_WARN_PERCENT: float = Field(default=5.0, description="Error rate warning threshold")
    PERF_HIT_RATE_WARN_PERCENT: float = Field(default=50.0, description="Cache hit rate warning threshold")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class PaginationSettings(BaseSettings):
    """Page size defaults and bounds."""

    DEFAULT_PAGE_LIMIT: int = Field(default=20, ge=1, description="Default page size")
    MAX_PAGE_LIMIT: int = Field(default=100, ge=1, description="Largest accepted page size")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Channel Discovery Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routes")
    API_HOST: str = Field(default="0.0.0.0", description="Bind host for uvicorn")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Bind port for uvicorn")
    CHANNEL_SEED_FILE: str | None = Field(default=None, description="JSON seed for the in-memory source")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from channel_cache.core.config import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_TTL_CHANNELS
        backend = settings.remote_cache.resolve_backend()
    """

    # Cache settings
    CACHE_ENABLED: bool = Field(default=True, description="Enable read-path caching")
    CACHE_SWEEP_INTERVAL: float = Field(default=60.0, gt=0, description="Expired entry sweep period (seconds)")
    CACHE_L1_MAX_SIZE: int = Field(default=10000, gt=0, description="Memory tier max entries")
    CACHE_TTL_CHANNELS: int = Field(default=600, gt=0, description="Channel listing TTL")
    CACHE_TTL_SEARCH: int = Field(default=300, gt=0, description="Search results TTL")
    CACHE_TTL_CHANNEL_DETAIL: int = Field(default=900, gt=0, description="Channel detail TTL")
    CACHE_TTL_JOIN_LINK: int = Field(default=3600, gt=0, description="Join link TTL")
    CACHE_SWR_CHANNELS: int = Field(default=30, ge=0, description="Listing grace")
    CACHE_SWR_SEARCH: int = Field(default=30, ge=0, description="Search grace")
    CACHE_SWR_CHANNEL_DETAIL: int = Field(default=60, ge=0, description="Detail grace")
    CACHE_SWR_JOIN_LINK: int = Field(default=60, ge=0, description="Join link grace")

    # Remote tier settings
    REMOTE_CACHE_BACKEND: RemoteBackend = Field(default=RemoteBackend.AUTO, description="Remote tier transport")
    KV_REST_API_URL: str | None = Field(default=None, description="Key-value REST endpoint")
    KV_REST_API_TOKEN: str | None = Field(default=None, description="Key-value REST bearer token")
    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REMOTE_CACHE_TIMEOUT: float = Field(default=2.0, gt=0, description="Remote call timeout (seconds)")

    # Performance settings
    PERF_SMOOTHING_FACTOR: float = Field(default=0.1, gt=0, le=1, description="EMA smoothing factor")
    PERF_LATENCY_WARN_MS: float = Field(default=500.0, description="Average latency warning threshold")
    PERF_ERROR_RATE_WARN_PERCENT: float = Field(default=5.0, description="Error rate warning threshold")
    PERF_HIT_RATE_WARN_PERCENT: float = Field(default=50.0, description="Cache hit rate warning threshold")

    # Pagination settings
    DEFAULT_PAGE_LIMIT: int = Field(default=20, ge=1, description="Default page size")
    MAX_PAGE_LIMIT: int = Field(default=100, ge=1, description="Largest accepted page size")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Channel Discovery Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routes")
    API_HOST: str = Field(default="0.0.0.0", description="Bind host for uvicorn")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Bind port for uvicorn")
    CHANNEL_SEED_FILE: str | None = Field(default=None, description="JSON seed for the in-memory source")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Grouped views
    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_ENABLED=self.CACHE_ENABLED,
            CACHE_SWEEP_INTERVAL=self.CACHE_SWEEP_INTERVAL,
            CACHE_L1_MAX_SIZE=self.CACHE_L1_MAX_SIZE,
            CACHE_TTL_CHANNELS=self.CACHE_TTL_CHANNELS,
            CACHE_TTL_SEARCH=self.CACHE_TTL_SEARCH,
            CACHE_TTL_CHANNEL_DETAIL=self.CACHE_TTL_CHANNEL_DETAIL,
            CACHE_TTL_JOIN_LINK=self.CACHE_TTL_JOIN_LINK,
            CACHE_SWR_CHANNELS=self.CACHE_SWR_CHANNELS,
            CACHE_SWR_SEARCH=self.CACHE_SWR_SEARCH,
            CACHE_SWR_CHANNEL_DETAIL=self.CACHE_SWR_CHANNEL_DETAIL,
            CACHE_SWR_JOIN_LINK=self.CACHE_SWR_JOIN_LINK,
        )

    @property
    def remote_cache(self) -> RemoteCacheSettings:
        """Get remote tier settings."""
        return RemoteCacheSettings(
            REMOTE_CACHE_BACKEND=self.REMOTE_CACHE_BACKEND,
            KV_REST_API_URL=self.KV_REST_API_URL,
            KV_REST_API_TOKEN=self.KV_REST_API_TOKEN,
            REDIS_URL=self.REDIS_URL,
            REMOTE_CACHE_TIMEOUT=self.REMOTE_CACHE_TIMEOUT,
        )

    @property
    def performance(self) -> PerformanceSettings:
        """Get performance tracker settings."""
        return PerformanceSettings(
            PERF_SMOOTHING_FACTOR=self.PERF_SMOOTHING_FACTOR,
            PERF_LATENCY_WARN_MS=self.PERF_LATENCY_WARN_MS,
            PERF_ERROR_RATE_WARN_PERCENT=self.PERF_ERROR_RATE_WARN_PERCENT,
            PERF_HIT_RATE_WARN_PERCENT=self.PERF_HIT_RATE_WARN_PERCENT,
        )

    @property
    def pagination(self) -> PaginationSettings:
        """Get pagination settings."""
        return PaginationSettings(
            DEFAULT_PAGE_LIMIT=self.DEFAULT_PAGE_LIMIT,
            MAX_PAGE_LIMIT=self.MAX_PAGE_LIMIT,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_BASE_PATH=self.API_BASE_PATH,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CHANNEL_SEED_FILE=self.CHANNEL_SEED_FILE,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
