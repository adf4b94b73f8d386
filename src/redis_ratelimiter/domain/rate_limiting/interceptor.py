"""
Rate Limit Interceptor

Applies a `RateLimitRule` around arbitrary application logic. The interceptor
has the shape of an HTTP middleware: it receives the rule, a description of
the call, and a `call_next` continuation, and decides whether the
continuation runs.

Per call the decision is a strict linear sequence:

1. bucket = rule name, or the operation's own name
2. identifier = resolved key expression, or ``default``
3. blacklisted            -> BlacklistedSourceError   (DENY_BLACKLIST)
4. whitelisted            -> call_next()              (BYPASS_WHITELIST)
5. quota exhausted        -> RateLimitExceededError   (DENY_RATE_LIMIT)
6. otherwise              -> call_next()              (ALLOW)

The `rate_limit` decorator wraps the function object itself, so calls made
from other methods of the same object are intercepted like any other call.
"""

import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar, Union

import structlog
from starlette.concurrency import run_in_threadpool

from redis_ratelimiter.core.exceptions import BlacklistedSourceError, RateLimitExceededError

from .expressions import resolve_identifier
from .services import AccessListService, RateLimiterService
from .value_objects import (
    DEFAULT_IDENTIFIER,
    InvocationContext,
    RateLimitDecision,
    RateLimitRule,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")
CallNext = Callable[[], Union[Awaitable[Any], Any]]

_RECEIVER_NAMES = frozenset({"self", "cls"})


@dataclass(frozen=True)
class Invocation:
    """A single call to a guarded operation."""
    operation_name: str
    parameter_names: Sequence[str] = field(default_factory=tuple)
    parameter_values: Sequence[Any] = field(default_factory=tuple)

    @classmethod
    def from_call(
        cls,
        func: Callable[..., Any],
        args: tuple,
        kwargs: dict,
        signature: Optional[inspect.Signature] = None,
    ) -> "Invocation":
        """Bind call arguments to the parameter names of `func`, defaults applied.

        A leading `self` or `cls` receiver is not addressable, so `#p0` is the
        first declared argument of methods as well.
        """
        bound = (signature or inspect.signature(func)).bind(*args, **kwargs)
        bound.apply_defaults()
        arguments = list(bound.arguments.items())
        if arguments and arguments[0][0] in _RECEIVER_NAMES:
            arguments = arguments[1:]
        return cls(
            operation_name=func.__name__,
            parameter_names=tuple(name for name, _ in arguments),
            parameter_values=tuple(value for _, value in arguments),
        )


class RateLimitInterceptor:
    """Orchestrates identifier resolution, access lists and the rate limiter."""

    def __init__(self, rate_limiter: RateLimiterService, access_lists: AccessListService):
        self.rate_limiter = rate_limiter
        self.access_lists = access_lists

    def resolve_context(self, rule: RateLimitRule, invocation: Invocation) -> InvocationContext:
        """Determine the bucket and identifier for a call.

        Raises:
            ExpressionResolutionError: If the rule's key expression cannot be
                evaluated against the call arguments.
        """
        identifier = resolve_identifier(
            rule.key, invocation.parameter_names, invocation.parameter_values
        )
        return InvocationContext(
            bucket_name=rule.bucket_for(invocation.operation_name),
            identifier=identifier or DEFAULT_IDENTIFIER,
        )

    async def decide(self, rule: RateLimitRule, context: InvocationContext) -> RateLimitDecision:
        """Run the access list and quota checks for a resolved call.

        Returns:
            ALLOW or BYPASS_WHITELIST.

        Raises:
            BlacklistedSourceError: DENY_BLACKLIST.
            RateLimitExceededError: DENY_RATE_LIMIT.
        """
        bucket_name, identifier = context.bucket_name, context.identifier

        if await self.access_lists.is_blacklisted(identifier, bucket_name):
            logger.warning(
                "rate_limit_decision",
                decision=RateLimitDecision.DENY_BLACKLIST.value,
                bucket=bucket_name,
                identifier=identifier,
            )
            raise BlacklistedSourceError(identifier, bucket_name)

        if await self.access_lists.is_whitelisted(identifier, bucket_name):
            logger.info(
                "rate_limit_decision",
                decision=RateLimitDecision.BYPASS_WHITELIST.value,
                bucket=bucket_name,
                identifier=identifier,
            )
            return RateLimitDecision.BYPASS_WHITELIST

        key = context.counter_key
        try:
            await self.rate_limiter.check_and_consume(key, rule.limit, rule.duration)
        except RateLimitExceededError:
            logger.warning(
                "rate_limit_decision",
                decision=RateLimitDecision.DENY_RATE_LIMIT.value,
                bucket=bucket_name,
                identifier=identifier,
            )
            raise

        logger.debug(
            "rate_limit_decision",
            decision=RateLimitDecision.ALLOW.value,
            bucket=bucket_name,
            identifier=identifier,
        )
        return RateLimitDecision.ALLOW

    async def intercept(self, rule: RateLimitRule, invocation: Invocation, call_next: CallNext) -> Any:
        """Apply `rule` to a call and run `call_next` if the call is admitted.

        The continuation's result or exception is passed through unchanged.
        """
        context = self.resolve_context(rule, invocation)
        await self.decide(rule, context)
        result = call_next()
        if inspect.isawaitable(result):
            result = await result
        return result


# ---------------------------------------------------------------------------
# Process-wide interceptor used by decorated functions
# ---------------------------------------------------------------------------

_interceptor: Optional[RateLimitInterceptor] = None


def configure_interceptor(interceptor: Optional[RateLimitInterceptor]) -> None:
    """Install the interceptor used by `rate_limit` when none is passed explicitly."""
    global _interceptor
    _interceptor = interceptor


def get_interceptor() -> RateLimitInterceptor:
    """Return the configured interceptor.

    Raises:
        RuntimeError: If `configure_interceptor` has not been called.
    """
    if _interceptor is None:
        raise RuntimeError(
            "Rate limit interceptor is not configured; call configure_interceptor() at startup"
        )
    return _interceptor


def rate_limit(
    limit: int,
    duration: int,
    key: str = "",
    name: str = "",
    interceptor: Optional[RateLimitInterceptor] = None,
) -> Callable[[Callable[..., T]], Callable[..., Awaitable[T]]]:
    """Decorator factory guarding a function with a fixed-window quota.

    Args:
        limit: Maximum calls per window.
        duration: Window length in seconds.
        key: Identifier expression, e.g. ``"#phone"``, ``"#p0"``, ``"#user.email"``.
        name: Bucket name; defaults to the function's name.
        interceptor: Interceptor to use; defaults to the one installed with
            `configure_interceptor`, looked up on every call.

    The returned wrapper is always a coroutine function. Once a call is
    admitted, synchronous functions run in the threadpool so they do not
    block the event loop.

    Example:
        @router.post("/send-otp")
        @rate_limit(limit=3, duration=60, key="#phone")
        async def send_otp(phone: str): ...
    """
    rule = RateLimitRule(limit=limit, duration=duration, key=key, name=name)

    def decorator(func: Callable[..., T]) -> Callable[..., Awaitable[T]]:
        signature = inspect.signature(func)
        is_coroutine = inspect.iscoroutinefunction(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            active = interceptor or get_interceptor()
            invocation = Invocation.from_call(func, args, kwargs, signature)
            if is_coroutine:
                call_next = functools.partial(func, *args, **kwargs)
            else:
                call_next = functools.partial(run_in_threadpool, func, *args, **kwargs)
            return await active.intercept(rule, invocation, call_next)

        wrapper.__rate_limit__ = rule
        return wrapper

    return decorator
