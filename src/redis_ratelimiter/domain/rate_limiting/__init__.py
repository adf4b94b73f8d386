"""Rate Limiting Domain

Fixed-window rate limiting over a shared counter store, with whitelist and
blacklist overrides:

- Value Objects: rules, resolved call context, decisions, counter keys
- Expressions: identifier resolution from call arguments
- Repositories: the counter store contract and its Redis implementation
- Services: the rate limit engine and the access list engine
- Interceptor: per-call orchestration and the `rate_limit` decorator
"""

from .expressions import resolve_identifier
from .interceptor import (
    Invocation,
    RateLimitInterceptor,
    configure_interceptor,
    get_interceptor,
    rate_limit,
)
from .repositories import CounterStore, RedisCounterStore
from .services import AccessListService, RateLimiterService
from .value_objects import InvocationContext, RateLimitDecision, RateLimitRule, build_key

__all__ = [
    "AccessListService",
    "CounterStore",
    "Invocation",
    "InvocationContext",
    "RateLimitDecision",
    "RateLimitInterceptor",
    "RateLimitRule",
    "RateLimiterService",
    "RedisCounterStore",
    "build_key",
    "configure_interceptor",
    "get_interceptor",
    "rate_limit",
    "resolve_identifier",
]
