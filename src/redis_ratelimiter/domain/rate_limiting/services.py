"""
Rate Limiting Domain Services

- RateLimiterService: fixed-window check-and-increment against the shared store
- AccessListService: whitelist/blacklist evaluation and dynamic list management

Both services are stateless apart from their collaborators; every piece of
cross-call state lives in the counter store or in the frozen settings.
"""

from typing import Optional

import structlog

from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.core.exceptions import (
    CounterStateError,
    CounterStoreError,
    RateLimitExceededError,
)

from .repositories import CounterStore
from .value_objects import build_key

logger = structlog.get_logger(__name__)

GLOBAL_SCOPE = "global"


class RateLimiterService:
    """
    Fixed-window rate limiter backed by a shared counter store.

    Each call performs one atomic increment on ``ratelimit:{bucket}:{identifier}``.
    The call that creates the counter (count == 1) starts the window by setting
    its expiry; calls observing a count above the limit are rejected until the
    key expires. Up to ``2 * limit`` calls can be admitted across a window
    boundary, which is inherent to fixed windows.
    """

    def __init__(self, store: CounterStore, atomic_window: bool = False):
        """
        Args:
            store: Shared counter store.
            atomic_window: Start windows with a single atomic increment-and-expire
                instead of INCR followed by EXPIRE.
        """
        self.store = store
        self.atomic_window = atomic_window

    @staticmethod
    def build_key(bucket_name: str, identifier: str) -> str:
        return build_key(bucket_name, identifier)

    async def check_and_consume(self, key: str, limit: int, duration: int) -> int:
        """
        Consume one unit of the quota for `key`.

        Args:
            key: Counter key (``ratelimit:{bucket}:{identifier}``).
            limit: Maximum calls per window.
            duration: Window length in seconds.

        Returns:
            The post-increment count for the current window.

        Raises:
            RateLimitExceededError: If the count exceeds `limit`.
            CounterStateError: If the store returned an invalid count.
            CounterStoreError: If the store is unavailable.
        """
        if self.atomic_window:
            count = await self.store.increment_with_expiry(key, duration)
        else:
            count = await self.store.increment(key)

        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            logger.error("rate_limit_counter_invalid", key=key, result=count)
            raise CounterStateError(key, count)

        # A narrow race exists between INCR and EXPIRE in the two-step mode;
        # the window simply starts when EXPIRE lands.
        if count == 1 and not self.atomic_window:
            await self.store.expire(key, duration)

        if count > limit:
            retry_after = await self._retry_after(key, duration)
            logger.warning(
                "rate_limit_exceeded",
                key=key,
                count=count,
                limit=limit,
                duration=duration,
                retry_after=retry_after,
            )
            raise RateLimitExceededError(key, limit, duration, retry_after)

        logger.debug("rate_limit_consumed", key=key, count=count, limit=limit)
        return count

    async def _retry_after(self, key: str, duration: int) -> int:
        """Remaining TTL of `key`, or the full window when it cannot be read."""
        try:
            ttl = await self.store.get_remaining_ttl(key)
        except CounterStoreError:
            return duration
        return ttl if ttl and ttl > 0 else duration


class AccessListService:
    """
    Whitelist/blacklist engine.

    Each list combines a static set from configuration with dynamic entries in
    the counter store, scoped either globally or to a single bucket:

        {prefix}global:{identifier}
        {prefix}{bucket_name}:{identifier}

    Checks short-circuit on the first match in the order: static set, global
    dynamic entry, bucket dynamic entry.
    """

    def __init__(self, store: CounterStore, settings: RateLimiterSettings):
        self.store = store
        self.settings = settings

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def _scoped_key(prefix: str, identifier: str, bucket_name: Optional[str]) -> str:
        return f"{prefix}{bucket_name or GLOBAL_SCOPE}:{identifier}"

    def whitelist_key(self, identifier: str, bucket_name: Optional[str] = None) -> str:
        return self._scoped_key(self.settings.whitelist_key_prefix, identifier, bucket_name)

    def blacklist_key(self, identifier: str, bucket_name: Optional[str] = None) -> str:
        return self._scoped_key(self.settings.blacklist_key_prefix, identifier, bucket_name)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def is_whitelisted(self, identifier: str, bucket_name: Optional[str] = None) -> bool:
        """
        Check if an identifier bypasses rate limiting for `bucket_name`.

        Returns:
            True if whitelisted in the static list, the global dynamic list, or
            the bucket's dynamic list.
        """
        return await self._is_listed(
            identifier,
            bucket_name,
            self.settings.static_whitelist,
            self.settings.whitelist_key_prefix,
        )

    async def is_blacklisted(self, identifier: str, bucket_name: Optional[str] = None) -> bool:
        """
        Check if an identifier is blocked for `bucket_name`.

        Returns:
            True if blacklisted in the static list, the global dynamic list, or
            the bucket's dynamic list.
        """
        return await self._is_listed(
            identifier,
            bucket_name,
            self.settings.static_blacklist,
            self.settings.blacklist_key_prefix,
        )

    async def _is_listed(
        self,
        identifier: str,
        bucket_name: Optional[str],
        static_entries: frozenset,
        prefix: str,
    ) -> bool:
        if not self.settings.whitelist_blacklist_enabled:
            return False

        if identifier in static_entries:
            return True

        if self.settings.use_dynamic_lists:
            if await self.store.exists(self._scoped_key(prefix, identifier, None)):
                return True
            if bucket_name and await self.store.exists(
                self._scoped_key(prefix, identifier, bucket_name)
            ):
                return True

        return False

    # ------------------------------------------------------------------
    # Dynamic list management
    # ------------------------------------------------------------------

    async def add_to_whitelist(
        self, identifier: str, bucket_name: Optional[str] = None, ttl_seconds: int = 0
    ) -> None:
        """
        Add an identifier to the global whitelist, or to a bucket's whitelist
        when `bucket_name` is given.

        Args:
            identifier: Identifier to whitelist.
            bucket_name: Bucket scope; None or empty for the global scope.
            ttl_seconds: Entry lifetime in seconds, 0 for permanent.
        """
        await self._add(self.whitelist_key(identifier, bucket_name), ttl_seconds)
        logger.info(
            "whitelist_entry_added",
            identifier=identifier,
            scope=bucket_name or GLOBAL_SCOPE,
            ttl_seconds=ttl_seconds,
        )

    async def add_to_blacklist(
        self, identifier: str, bucket_name: Optional[str] = None, ttl_seconds: int = 0
    ) -> None:
        """
        Add an identifier to the global blacklist, or to a bucket's blacklist
        when `bucket_name` is given.

        Args:
            identifier: Identifier to blacklist.
            bucket_name: Bucket scope; None or empty for the global scope.
            ttl_seconds: Entry lifetime in seconds, 0 for permanent.
        """
        await self._add(self.blacklist_key(identifier, bucket_name), ttl_seconds)
        logger.info(
            "blacklist_entry_added",
            identifier=identifier,
            scope=bucket_name or GLOBAL_SCOPE,
            ttl_seconds=ttl_seconds,
        )

    async def remove_from_whitelist(self, identifier: str, bucket_name: Optional[str] = None) -> None:
        await self.store.delete(self.whitelist_key(identifier, bucket_name))
        logger.info("whitelist_entry_removed", identifier=identifier, scope=bucket_name or GLOBAL_SCOPE)

    async def remove_from_blacklist(self, identifier: str, bucket_name: Optional[str] = None) -> None:
        await self.store.delete(self.blacklist_key(identifier, bucket_name))
        logger.info("blacklist_entry_removed", identifier=identifier, scope=bucket_name or GLOBAL_SCOPE)

    async def _add(self, key: str, ttl_seconds: int) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        await self.store.set(key, "1", ttl_seconds=ttl_seconds or None)
