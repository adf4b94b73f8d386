"""Structured exception hierarchy for the rate limiter.

Every error carries a machine-readable `code` for programmatic handling and a
human-readable `message` for logging. The violation errors additionally carry
the data the boundary layer needs to build a precise client response.

The hierarchy is designed to:
- Keep the two denial signals (quota exhausted, blacklisted) distinct, since
  they map to different transport statuses (429 vs 403).
- Keep infrastructure failures apart from denials so they are never mistaken
  for a normal rejection.
"""

from __future__ import annotations

from typing import Final

__all__: Final = [
    "RateLimiterError",
    "ExpressionResolutionError",
    "RateLimitExceededError",
    "BlacklistedSourceError",
    "CounterStoreError",
    "CounterStateError",
]


class RateLimiterError(Exception):
    """Base exception class for all rate limiter errors.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "rate_limiter_error"

    def __init__(self, message: str, code: str = "rate_limiter_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Call-site configuration errors
# ---------------------------------------------------------------------------


class ExpressionResolutionError(RateLimiterError):
    """Raised when an identifier expression cannot be parsed or evaluated.

    This is fatal to the call: the identifier is never silently defaulted.
    The underlying failure is available as ``__cause__``.

    Attributes:
        expression (str): The expression that failed.
    """

    def __init__(
        self,
        expression: str,
        reason: str | None = None,
        code: str = "expression_resolution_error",
    ):
        self.expression = expression
        self.reason = reason
        message = f"Failed to resolve key expression: {expression}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Denials
# ---------------------------------------------------------------------------


class RateLimitExceededError(RateLimiterError):
    """Raised when the quota for a key is exhausted in the current window.

    Maps to a `429 Too Many Requests` HTTP status with a `Retry-After` header.

    Attributes:
        key (str): The counter key that was exceeded.
        limit (int): Maximum requests per window.
        duration (int): Window length in seconds.
        retry_after_seconds (int): Seconds until the window resets.
    """

    def __init__(
        self,
        key: str,
        limit: int,
        duration: int,
        retry_after_seconds: int,
        code: str = "rate_limit_exceeded",
    ):
        self.key = key
        self.limit = limit
        self.duration = duration
        self.retry_after_seconds = retry_after_seconds
        message = (
            f"Rate limit exceeded for key '{key}'. Limit: {limit} requests per "
            f"{duration} seconds. Retry after {retry_after_seconds} seconds."
        )
        super().__init__(message, code)


class BlacklistedSourceError(RateLimiterError):
    """Raised when an identifier is blacklisted for a bucket.

    Maps to a `403 Forbidden` HTTP status.
    """

    def __init__(self, identifier: str, bucket_name: str, code: str = "blacklisted_source"):
        self.identifier = identifier
        self.bucket_name = bucket_name
        message = (
            f"Access denied. Identifier '{identifier}' is blacklisted for bucket "
            f"'{bucket_name}'."
        )
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class CounterStoreError(RateLimiterError):
    """Raised when the counter store cannot be reached or a command fails.

    Not retried or masked: the guarded call is rejected (fail-closed).
    """

    def __init__(self, message: str, code: str = "counter_store_unavailable"):
        super().__init__(message, code)


class CounterStateError(RateLimiterError):
    """Raised when the store returns an invalid increment result.

    Signals store misbehaviour, not a normal denial.
    """

    def __init__(self, key: str, result: object = None, code: str = "counter_state_error"):
        self.key = key
        self.result = result
        super().__init__(
            f"Failed to increment rate limit counter for key: {key} (got {result!r})", code
        )
