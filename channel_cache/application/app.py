#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Builds the channel discovery read API: routes, middleware, exception
handlers and the lifespan that owns the cache, tracker and service.

Run:
    uvicorn channel_cache.application.app:app
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from channel_cache.application.api.middleware import ErrorHandlingMiddleware
from channel_cache.application.api.middleware.error_handler import register_exception_handlers
from channel_cache.application.api.routes import admin_router, channels_router, health_router
from channel_cache.application.services import ChannelDiscoveryService
from channel_cache.application.sources import ChannelSource, InMemoryChannelSource
from channel_cache.core.config.constants import HEADER_THREAD_ID, Stage
from channel_cache.core.config.settings import Settings, get_settings
from channel_cache.core.logging import clear_thread_id, get_logger, log_stage, set_thread_id, setup_logging
from channel_cache.core.observability import PerformanceTracker
from channel_cache.infrastructure.cache import TieredCache
from channel_cache.infrastructure.monitoring import get_metrics_collector

logger = get_logger(__name__)


def default_source(settings: Settings) -> ChannelSource:
    """In-memory source, seeded from CHANNEL_SEED_FILE when configured."""
    seed_file = settings.app.CHANNEL_SEED_FILE
    source = InMemoryChannelSource.from_file(seed_file) if seed_file else InMemoryChannelSource()
    log_stage(logger, Stage.INITIALIZATION, "Channel source ready", records=len(source), seeded=bool(seed_file))
    return source


# ============================================================================
# Application Factory
# ============================================================================


def create_app(source: ChannelSource | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        source: Fetch collaborator consulted on cache miss (default: in-memory source)
        settings: Configuration (default: process-wide settings)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: logging, tiered cache (sweep started), tracker, service.
        Shutdown: sweep cancelled, remote client closed.
        """
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Starting channel discovery API",
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
        )

        channel_source = source if source is not None else default_source(settings)
        cache = TieredCache.from_settings(settings)
        await cache.start()
        tracker = PerformanceTracker(
            smoothing_factor=settings.performance.PERF_SMOOTHING_FACTOR,
            metrics=get_metrics_collector(),
        )
        service = ChannelDiscoveryService(
            cache=cache,
            tracker=tracker,
            source=channel_source,
            settings=settings,
        )

        app.state.settings = settings
        app.state.cache = cache
        app.state.tracker = tracker
        app.state.service = service
        logger.info("Application startup complete")

        try:
            yield
        finally:
            logger.info("Shutting down application")
            await cache.stop()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Cached read API for channel discovery",
        lifespan=lifespan,
    )

    # Registered first so it wraps innermost; the thread id middleware below runs outside it
    app.add_middleware(
        ErrorHandlingMiddleware,
        include_traceback=(settings.app.ENVIRONMENT == "development"),
    )

    @app.middleware("http")
    async def thread_id_middleware(request: Request, call_next):
        """Inject (or propagate) X-Thread-ID for log correlation."""
        thread_id = request.headers.get(HEADER_THREAD_ID) or str(uuid.uuid4())
        set_thread_id(thread_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_THREAD_ID] = thread_id
            return response
        finally:
            clear_thread_id()

    register_exception_handlers(app)

    base_path = settings.app.API_BASE_PATH
    app.include_router(channels_router, prefix=base_path)
    app.include_router(health_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "channel_cache.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
