"""
Application-specific settings.
"""
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name and logging output.
    """
    PROJECT_NAME: str = "redis-ratelimiter"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
