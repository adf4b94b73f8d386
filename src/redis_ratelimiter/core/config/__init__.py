from .rate_limiter import RateLimiterSettings
from .redis import RedisSettings
from .settings import Settings, rate_limiter_settings, settings

__all__ = [
    "RateLimiterSettings",
    "RedisSettings",
    "Settings",
    "rate_limiter_settings",
    "settings",
]
