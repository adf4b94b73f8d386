"""
Rate Limiting Value Objects

Immutable value objects representing core concepts in the rate limiting domain.

Value Objects:
- RateLimitRule: Per call site quota declaration
- InvocationContext: Bucket and identifier resolved for a single call
- RateLimitDecision: Terminal outcome of an intercepted call

The counter key layout built by `build_key` is shared by every instance using
the same Redis, so it must not change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

KEY_PREFIX = "ratelimit"
DEFAULT_IDENTIFIER = "default"


def build_key(bucket_name: str, identifier: str) -> str:
    """Compose the counter key for a bucket/identifier pair.

    Format: ``ratelimit:{bucket_name}:{identifier}``. Components are used
    verbatim; a colon inside either one is not escaped.
    """
    return f"{KEY_PREFIX}:{bucket_name}:{identifier}"


class RateLimitDecision(Enum):
    """Terminal states of an intercepted call."""
    ALLOW = "allow"
    BYPASS_WHITELIST = "bypass_whitelist"
    DENY_BLACKLIST = "deny_blacklist"
    DENY_RATE_LIMIT = "deny_rate_limit"


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    """
    Immutable quota declaration attached to a guarded call site.

    Attributes:
        limit: Maximum number of calls admitted per window.
        duration: Window length in seconds.
        key: Identifier expression (``#phone``, ``#p0``, ``#user.email``).
            Empty means every caller shares the ``default`` identifier.
        name: Bucket name. Empty means the guarded operation's own name.

    Business Rules:
    - limit and duration must be positive integers
    """
    limit: int
    duration: int
    key: str = ""
    name: str = ""

    def __post_init__(self):
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")
        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration <= 0:
            raise ValueError(f"duration must be a positive integer, got {self.duration!r}")

    def bucket_for(self, operation_name: str) -> str:
        """Return the declared bucket name, or `operation_name` when unset."""
        return self.name or operation_name


@dataclass(frozen=True, slots=True)
class InvocationContext:
    """Bucket and identifier resolved for one intercepted call."""
    bucket_name: str
    identifier: str = DEFAULT_IDENTIFIER

    @property
    def counter_key(self) -> str:
        return build_key(self.bucket_name, self.identifier)
