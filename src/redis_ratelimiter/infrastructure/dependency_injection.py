"""Dependency wiring for the rate limiting services.

Builds the counter store, the two engines and the interceptor from a Redis
client and the rate limiter settings. The domain services only see the
`CounterStore` interface; Redis specifics stay in `RedisCounterStore`.
"""

from typing import Optional

from redis.asyncio import Redis

from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.core.config.settings import rate_limiter_settings
from redis_ratelimiter.domain.rate_limiting.interceptor import RateLimitInterceptor
from redis_ratelimiter.domain.rate_limiting.repositories import CounterStore, RedisCounterStore
from redis_ratelimiter.domain.rate_limiting.services import (
    AccessListService,
    RateLimiterService,
)


def create_interceptor_for_store(
    store: CounterStore, settings: Optional[RateLimiterSettings] = None
) -> RateLimitInterceptor:
    """Create an interceptor over any `CounterStore` implementation."""
    settings = settings or rate_limiter_settings
    return RateLimitInterceptor(
        rate_limiter=RateLimiterService(store, atomic_window=settings.atomic_window),
        access_lists=AccessListService(store, settings),
    )


def create_interceptor(
    redis: Redis, settings: Optional[RateLimiterSettings] = None
) -> RateLimitInterceptor:
    """Create an interceptor backed by Redis.

    Args:
        redis: Shared async Redis client.
        settings: Rate limiter settings; defaults to the environment-loaded ones.
    """
    return create_interceptor_for_store(RedisCounterStore(redis), settings)
