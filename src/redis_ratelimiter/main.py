"""Main application entry point for the example FastAPI application.

Run with ``uvicorn redis_ratelimiter.main:app``.
"""

from redis_ratelimiter.core.application import create_application
from redis_ratelimiter.core.config.settings import settings
from redis_ratelimiter.core.logging import configure_logging

# Configure logging
configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

# Create the FastAPI application
app = create_application()
