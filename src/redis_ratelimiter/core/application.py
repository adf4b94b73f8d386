"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a FastAPI application with
the rate limiter's exception handlers, lifespan and example routes registered.
"""

from typing import Callable, Optional

from fastapi import FastAPI
from redis.asyncio import Redis

from redis_ratelimiter.adapters.api.examples import router as examples_router
from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.core.config.settings import settings
from redis_ratelimiter.core.handlers import register_exception_handlers
from redis_ratelimiter.core.lifecycle import create_lifespan_manager
from redis_ratelimiter.infrastructure.redis import create_redis_client


def create_application(
    redis_factory: Callable[[], Redis] = create_redis_client,
    limiter_settings: Optional[RateLimiterSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        redis_factory: Builds the shared Redis client on startup.
        limiter_settings: Rate limiter settings; defaults to the environment-loaded ones.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=create_lifespan_manager(redis_factory, limiter_settings),
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(examples_router, prefix="/api")

    return app
