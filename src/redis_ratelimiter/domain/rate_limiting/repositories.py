"""
Rate Limiting Repositories

Contract for the shared counter store and its Redis implementation.

The engines only need a handful of primitives (atomic increment, expiry,
TTL read, existence check, set, delete). Keeping them behind an interface
lets the domain services be tested against an in-memory double and keeps the
Redis specifics (error types, TTL sentinels, Lua scripts) in one place.
"""

from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import NoScriptError, RedisError

from redis_ratelimiter.core.exceptions import CounterStoreError

logger = structlog.get_logger(__name__)


class CounterStore(ABC):
    """
    Repository interface over the shared key-value store.

    All operations are round trips to the shared store; implementations raise
    `CounterStoreError` when the store is unreachable or a command fails.
    """

    @abstractmethod
    async def increment(self, key: str) -> Optional[int]:
        """
        Atomically increment the integer at `key`, creating it at 1 if absent.

        Returns:
            The post-increment value.
        """

    @abstractmethod
    async def increment_with_expiry(self, key: str, seconds: int) -> Optional[int]:
        """
        Increment `key` and, when this call created it, set its expiry, as a
        single atomic operation.

        Returns:
            The post-increment value.
        """

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """Set the expiry of `key` in seconds. Returns False if the key is absent."""

    @abstractmethod
    async def get_remaining_ttl(self, key: str) -> Optional[int]:
        """
        Remaining time to live of `key` in seconds.

        Returns:
            The TTL, or None when the key is absent or has no expiry.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether `key` exists."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store `value` at `key`, with an optional expiry in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete `key`. Deleting an absent key is a no-op."""


class RedisCounterStore(CounterStore):
    """
    A concrete implementation of CounterStore using Redis.

    INCR is atomic on the server, so concurrent callers on any instance observe
    distinct counts. The optional Lua script additionally folds the window's
    EXPIRE into the same atomic step.
    """

    _INCREMENT_WITH_EXPIRY_SCRIPT = """
    local current = redis.call('INCR', KEYS[1])
    if current == 1 then
        redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
    end
    return current
    """

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize the Redis-based counter store.

        Args:
            redis_client (redis.Redis): The async Redis client instance.
        """
        self.redis = redis_client
        self._increment_with_expiry_sha: Optional[str] = None

    async def _register_scripts(self) -> str:
        """Register the Lua script with Redis and return its SHA."""
        if self._increment_with_expiry_sha is None:
            self._increment_with_expiry_sha = await self.redis.script_load(
                self._INCREMENT_WITH_EXPIRY_SCRIPT
            )
        return self._increment_with_expiry_sha

    @staticmethod
    def _store_error(operation: str, key: str, exc: RedisError) -> CounterStoreError:
        logger.error("counter_store_failed", operation=operation, key=key, error=str(exc))
        return CounterStoreError(f"Counter store {operation} failed for key '{key}': {exc}")

    async def increment(self, key: str) -> Optional[int]:
        try:
            return await self.redis.incr(key)
        except RedisError as exc:
            raise self._store_error("increment", key, exc) from exc

    async def increment_with_expiry(self, key: str, seconds: int) -> Optional[int]:
        try:
            sha = await self._register_scripts()
            try:
                return await self.redis.evalsha(sha, 1, key, seconds)
            except NoScriptError:
                # Script cache was flushed (e.g. server restart); load it again.
                self._increment_with_expiry_sha = None
                sha = await self._register_scripts()
                return await self.redis.evalsha(sha, 1, key, seconds)
        except RedisError as exc:
            raise self._store_error("increment_with_expiry", key, exc) from exc

    async def expire(self, key: str, seconds: int) -> bool:
        try:
            return bool(await self.redis.expire(key, seconds))
        except RedisError as exc:
            raise self._store_error("expire", key, exc) from exc

    async def get_remaining_ttl(self, key: str) -> Optional[int]:
        try:
            ttl = await self.redis.ttl(key)
        except RedisError as exc:
            raise self._store_error("ttl", key, exc) from exc
        # Redis reports -2 for a missing key and -1 for a key without expiry.
        if ttl is None or ttl < 0:
            return None
        return int(ttl)

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except RedisError as exc:
            raise self._store_error("exists", key, exc) from exc

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            await self.redis.set(key, value, ex=ttl_seconds or None)
        except RedisError as exc:
            raise self._store_error("set", key, exc) from exc

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as exc:
            raise self._store_error("delete", key, exc) from exc
