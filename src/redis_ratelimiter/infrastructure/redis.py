"""
Redis Connection Module

This module provides the asynchronous Redis client that backs the shared rate
limit counters and the dynamic whitelist/blacklist entries. Every application
instance must point at the same Redis for limits to hold across instances.

**Security Note**: Use a rediss:// URL (REDIS_SSL=true) when Redis is reached
over an untrusted network, and keep credentials out of logs.

Functions:
    create_redis_client: Build a client from settings.
"""

from typing import Optional

from redis.asyncio import Redis
import logging

from redis_ratelimiter.core.config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Optional[Settings] = None) -> Redis:
    """
    Create an asynchronous Redis client from the application settings.

    The socket timeout bounds each round trip; a timed-out command raises and
    is treated as a store failure by the counter store.
    """
    settings = settings or default_settings
    redis = Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )
    logger.debug("Redis client created")
    return redis

