"""Rate limiter configuration.

Whitelist/blacklist switches, dynamic list key prefixes and the static
identifier sets. Values come from ``RATE_LIMITER_*`` environment variables or
the ``.env`` file; instances are frozen so the static lists cannot drift after
startup.
"""

from typing import Annotated, FrozenSet

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class RateLimiterSettings(BaseSettings):
    """Configuration consumed by the access list and rate limit engines."""

    whitelist_blacklist_enabled: bool = Field(
        True, description="Enable or disable whitelist/blacklist checks globally"
    )
    whitelist_key_prefix: str = Field(
        "ratelimit:whitelist:", description="Redis key prefix for dynamic whitelist entries"
    )
    blacklist_key_prefix: str = Field(
        "ratelimit:blacklist:", description="Redis key prefix for dynamic blacklist entries"
    )
    static_whitelist: Annotated[FrozenSet[str], NoDecode] = Field(
        default_factory=frozenset,
        description="Identifiers that always bypass rate limiting",
    )
    static_blacklist: Annotated[FrozenSet[str], NoDecode] = Field(
        default_factory=frozenset,
        description="Identifiers that are always rejected",
    )
    use_dynamic_lists: bool = Field(
        True, description="Consult Redis-backed whitelist/blacklist entries"
    )
    atomic_window: bool = Field(
        False,
        description="Start windows with a single INCR+EXPIRE Lua script instead of two commands",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="RATE_LIMITER_", extra="ignore", frozen=True
    )

    @field_validator("static_whitelist", "static_blacklist", mode="before")
    @classmethod
    def parse_comma_separated_sets(cls, v):
        """Parse comma-separated strings into sets."""
        if isinstance(v, str):
            return frozenset(item.strip() for item in v.split(",") if item.strip())
        elif isinstance(v, (list, set, tuple, frozenset)):
            return frozenset(v)
        return frozenset()
