import asyncio
import math
from typing import Dict, Optional

import pytest
from redis.exceptions import ResponseError

from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.domain.rate_limiting.interceptor import (
    RateLimitInterceptor,
    configure_interceptor,
)
from redis_ratelimiter.domain.rate_limiting.repositories import RedisCounterStore
from redis_ratelimiter.domain.rate_limiting.services import (
    AccessListService,
    RateLimiterService,
)


class FakeRedis:
    """In-memory stand-in for `redis.asyncio.Redis` with TTL bookkeeping.

    Only the commands used by `RedisCounterStore` are implemented. Time is
    controlled through `advance()` so window expiry can be tested without
    sleeping. Every command yields to the event loop once before running, so
    concurrent callers interleave, while the command itself stays atomic like
    on a real server.
    """

    def __init__(self):
        self.now = 0.0
        self.data: Dict[str, str] = {}
        self.expiry: Dict[str, float] = {}
        self.closed = False
        self.commands = []

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        deadline = self.expiry.get(key)
        if deadline is not None and self.now >= deadline:
            self.data.pop(key, None)
            self.expiry.pop(key, None)

    def _incr(self, key: str) -> int:
        self._purge(key)
        try:
            value = int(self.data.get(key, "0")) + 1
        except ValueError:
            raise ResponseError("value is not an integer or out of range")
        self.data[key] = str(value)
        return value

    def _expire(self, key: str, seconds: int) -> bool:
        self._purge(key)
        if key not in self.data:
            return False
        self.expiry[key] = self.now + int(seconds)
        return True

    async def incr(self, key):
        await asyncio.sleep(0)
        self.commands.append(("incr", key))
        return self._incr(key)

    async def expire(self, key, seconds):
        await asyncio.sleep(0)
        self.commands.append(("expire", key, seconds))
        return self._expire(key, seconds)

    async def ttl(self, key):
        await asyncio.sleep(0)
        self._purge(key)
        if key not in self.data:
            return -2
        if key not in self.expiry:
            return -1
        return math.ceil(self.expiry[key] - self.now)

    async def exists(self, *keys):
        await asyncio.sleep(0)
        count = 0
        for key in keys:
            self._purge(key)
            count += key in self.data
        return count

    async def set(self, key, value, ex: Optional[int] = None):
        await asyncio.sleep(0)
        self.commands.append(("set", key, value, ex))
        self.data[key] = str(value)
        self.expiry.pop(key, None)
        if ex:
            self.expiry[key] = self.now + ex
        return True

    async def delete(self, *keys):
        await asyncio.sleep(0)
        deleted = 0
        for key in keys:
            self._purge(key)
            if key in self.data:
                del self.data[key]
                self.expiry.pop(key, None)
                deleted += 1
        return deleted

    async def script_load(self, script):
        return "fake_script_sha"

    async def evalsha(self, sha, numkeys, key, seconds):
        await asyncio.sleep(0)
        self.commands.append(("evalsha", key, seconds))
        count = self._incr(key)
        if count == 1:
            self._expire(key, seconds)
        return count

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def counter_store(fake_redis):
    return RedisCounterStore(fake_redis)


@pytest.fixture
def limiter_settings():
    """Settings isolated from the environment and any .env file."""
    return RateLimiterSettings(_env_file=None)


@pytest.fixture
def rate_limiter(counter_store):
    return RateLimiterService(counter_store)


@pytest.fixture
def access_lists(counter_store, limiter_settings):
    return AccessListService(counter_store, limiter_settings)


@pytest.fixture
def interceptor(rate_limiter, access_lists):
    return RateLimitInterceptor(rate_limiter, access_lists)


@pytest.fixture
def installed_interceptor(interceptor):
    """Install `interceptor` as the process-wide one for decorated functions."""
    configure_interceptor(interceptor)
    yield interceptor
    configure_interceptor(None)
