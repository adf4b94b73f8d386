"""Application lifecycle management.

This module handles application startup and shutdown, creating the shared
Redis client and installing the rate limit interceptor used by decorated
endpoints.
"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from redis.asyncio import Redis

from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.core.config.settings import settings
from redis_ratelimiter.core.logging import logger
from redis_ratelimiter.domain.rate_limiting.interceptor import configure_interceptor
from redis_ratelimiter.infrastructure.dependency_injection import create_interceptor
from redis_ratelimiter.infrastructure.redis import create_redis_client


def create_lifespan_manager(
    redis_factory: Callable[[], Redis] = create_redis_client,
    limiter_settings: Optional[RateLimiterSettings] = None,
):
    """Create the application lifespan manager.

    Args:
        redis_factory: Builds the Redis client on startup.
        limiter_settings: Rate limiter settings; defaults to the environment-loaded ones.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the Redis client and interceptor on startup; close them on shutdown."""
        redis = redis_factory()
        interceptor = create_interceptor(redis, limiter_settings)
        app.state.redis = redis
        app.state.rate_limit_interceptor = interceptor
        configure_interceptor(interceptor)
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        try:
            yield
        finally:
            configure_interceptor(None)
            await redis.aclose()
            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
