"""Main application settings and configuration management.

This module composes the application settings from the different modules
(app, redis) into a single, accessible `Settings` class, and exposes the
rate limiter configuration alongside it.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the application.

Environment Support:
- Development: Uses .env
- Test: Uses .env.test
- Staging: Uses .env.staging
- Production: Uses .env.production
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .rate_limiter import RateLimiterSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)


class Settings(AppSettings, RedisSettings):
    """The main settings class that aggregates all application configurations.

    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
        - Rate limiter options live in `rate_limiter_settings` because they use
          their own ``RATE_LIMITER_`` environment prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="allow"
    )


_ENV_FILES = {
    "development": ".env",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _resolve_env_file() -> str | None:
    env = os.getenv("APP_ENV", "development")
    env_file = _ENV_FILES.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        return env_file
    if Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        return ".env"
    logger.info(f"No .env file found, using environment variables only (environment: {env})")
    return None


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env_file = _resolve_env_file()
    if env_file is None:
        return Settings()
    return Settings(_env_file=env_file)


def create_rate_limiter_settings() -> RateLimiterSettings:
    """Create the rate limiter settings from the same .env file as `Settings`."""
    env_file = _resolve_env_file()
    if env_file is None:
        return RateLimiterSettings()
    return RateLimiterSettings(_env_file=env_file)


# Singletons used across the application.
settings = create_settings()
rate_limiter_settings = create_rate_limiter_settings()
