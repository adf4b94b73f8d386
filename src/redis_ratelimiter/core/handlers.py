from __future__ import annotations

"""
Exception handlers for FastAPI applications using the rate limiter.

This module translates the rate limiter's violation signals into HTTP
responses. It holds no decision logic; the status codes and bodies are the
boundary contract only.
"""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from redis_ratelimiter.core.exceptions import (
    BlacklistedSourceError,
    CounterStoreError,
    RateLimitExceededError,
)

__all__ = [
    "rate_limit_exceeded_error_handler",
    "blacklisted_source_error_handler",
    "counter_store_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def rate_limit_exceeded_error_handler(
    request: Request, exc: RateLimitExceededError
) -> JSONResponse:
    """Handles `RateLimitExceededError`, returning a `429 Too Many Requests`.

    The `Retry-After` header carries the seconds left in the current window.

    Args:
        request: The incoming `Request` object.
        exc: The `RateLimitExceededError` instance.

    Returns:
        A `JSONResponse` with a 429 status code and the quota details.
    """
    logger.warning(
        "rate_limit_exceeded_response",
        path=request.url.path,
        key=exc.key,
        limit=exc.limit,
        duration=exc.duration,
        retry_after=exc.retry_after_seconds,
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(exc.retry_after_seconds)},
        content={
            "error": "Rate limit exceeded",
            "message": exc.message,
            "limit": exc.limit,
            "duration": exc.duration,
            "retryAfter": exc.retry_after_seconds,
            "timestamp": _timestamp(),
        },
    )


async def blacklisted_source_error_handler(
    request: Request, exc: BlacklistedSourceError
) -> JSONResponse:
    """Handles `BlacklistedSourceError`, returning a `403 Forbidden`.

    Args:
        request: The incoming `Request` object.
        exc: The `BlacklistedSourceError` instance.

    Returns:
        A `JSONResponse` with a 403 status code.
    """
    logger.warning(
        "blacklisted_source_response",
        path=request.url.path,
        identifier=exc.identifier,
        bucket=exc.bucket_name,
    )
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={
            "error": "Access denied",
            "message": exc.message,
            "identifier": exc.identifier,
            "bucketName": exc.bucket_name,
            "timestamp": _timestamp(),
        },
    )


async def counter_store_error_handler(request: Request, exc: CounterStoreError) -> JSONResponse:
    """Handles `CounterStoreError`, returning a `503 Service Unavailable`.

    The store error message is logged but not returned, since it can include
    connection details.
    """
    logger.error("counter_store_unavailable_response", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "Service unavailable",
            "message": "Rate limiting backend is unavailable. Try again later.",
            "timestamp": _timestamp(),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers the rate limiter exception handlers with a FastAPI application.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(BlacklistedSourceError, blacklisted_source_error_handler)
    app.add_exception_handler(CounterStoreError, counter_store_error_handler)
