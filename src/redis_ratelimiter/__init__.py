"""Distributed fixed-window rate limiting backed by Redis."""

from redis_ratelimiter.core.exceptions import (
    BlacklistedSourceError,
    CounterStateError,
    CounterStoreError,
    ExpressionResolutionError,
    RateLimitExceededError,
    RateLimiterError,
)
from redis_ratelimiter.domain.rate_limiting import (
    AccessListService,
    CounterStore,
    RateLimitInterceptor,
    RateLimitRule,
    RateLimiterService,
    RedisCounterStore,
    build_key,
    configure_interceptor,
    rate_limit,
    resolve_identifier,
)

__all__ = [
    "AccessListService",
    "BlacklistedSourceError",
    "CounterStateError",
    "CounterStore",
    "CounterStoreError",
    "ExpressionResolutionError",
    "RateLimitExceededError",
    "RateLimitInterceptor",
    "RateLimitRule",
    "RateLimiterError",
    "RateLimiterService",
    "RedisCounterStore",
    "build_key",
    "configure_interceptor",
    "rate_limit",
    "resolve_identifier",
]
