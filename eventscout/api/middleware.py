"""HTTP middleware for the eventScout API.

main.py registers ``ErrorHandlingMiddleware`` first and
``RequestLoggingMiddleware`` second.  Starlette runs the last-registered
middleware outermost, so the access log records the status code that the
error handler produced.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from eventscout.api.schemas import ErrorResponse
from eventscout.utils.errors import (
    ConfigurationError,
    EventScoutError,
    InvalidSearchRequestError,
    ProviderUnavailableError,
    RateLimitError,
)
from eventscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# First match wins; anything else maps to 500.
_STATUS_BY_ERROR: tuple[tuple[type[EventScoutError], int], ...] = (
    (InvalidSearchRequestError, 422),
    (RateLimitError, 429),
    (ProviderUnavailableError, 503),
    (ConfigurationError, 500),
)


def status_for(exc: EventScoutError) -> int:
    return next(
        (status for error_type, status in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        500,
    )


def error_response(exc: EventScoutError) -> JSONResponse:
    """Render *exc* as an :class:`ErrorResponse` with its mapped status."""
    body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=status_for(exc), content=body.model_dump())


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Allow cross-origin calls from *allowed_origins*, or from anywhere."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One ``http_request`` log line per request, with its latency."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn an escaping ``EventScoutError`` into a JSON error body.

    Clients get the exception class name and message; the provider name
    only goes to the server log.  Other exceptions are left to FastAPI.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except EventScoutError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
            )
            return error_response(exc)
