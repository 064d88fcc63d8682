"""
Error Handling
==============

Two layers turn exceptions into HTTP responses:

1. Exception handlers (registered by ``register_exception_handlers``)
   map the read-path hierarchy to status codes:

       InvalidArgumentError / ValidationError  → 400
       NotFoundError (ChannelNotFoundError)    → 404
       any other ChannelCacheError             → 500

   Starlette picks the handler for the most specific class in the
   exception's MRO, so the base handler only sees what the others don't.

2. ``ErrorHandlingMiddleware`` is the last line of defense for anything
   outside the hierarchy: it logs the full traceback and returns a
   generic 500 body. Tracebacks are included in the body only when
   ``include_traceback`` is set (development).

Every error body is ``ChannelCacheError.to_dict()`` shaped.
"""

import traceback
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from channel_cache.core.config.constants import HEADER_THREAD_ID, Stage
from channel_cache.core.exceptions import ChannelCacheError, NotFoundError, ValidationError
from channel_cache.core.logging import get_logger, get_thread_id, log_stage

logger = get_logger(__name__)


def _error_response(status_code: int, exc: ChannelCacheError) -> JSONResponse:
    if exc.thread_id is None:
        exc.thread_id = get_thread_id()
    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
        headers={HEADER_THREAD_ID: exc.thread_id or ""},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    log_stage(
        logger,
        Stage.REQUEST_VALIDATION,
        "Rejected request",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return _error_response(400, exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, exc)


async def channel_cache_error_handler(request: Request, exc: ChannelCacheError) -> JSONResponse:
    logger.error(
        f"Read-path error: {exc.message}",
        path=request.url.path,
        error_type=type(exc).__name__,
        details=exc.details,
    )
    return _error_response(500, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ChannelCacheError, channel_cache_error_handler)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catch-all for exceptions no handler claimed.

    Internal details stay in the logs; clients get a generic message
    plus the error type.
    """

    def __init__(self, app, include_traceback: bool = False):
        """
        Args:
            app: The ASGI application
            include_traceback: Include stack traces in error bodies (development only)
        """
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            error_type = type(e).__name__

            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )

            error_response = {
                "error_type": "InternalServerError",
                "message": "An unexpected error occurred while processing your request",
                "thread_id": get_thread_id(),
                "details": {"original_error": error_type},
            }

            if self.include_traceback:
                error_response["details"]["traceback"] = traceback.format_exc()
                error_response["details"]["original_message"] = str(e)

            return JSONResponse(status_code=500, content=error_response)
