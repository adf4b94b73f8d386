import json
import logging

import structlog

from redis_ratelimiter.core.logging import configure_logging


def test_json_logs_render_key_values(caplog):
    configure_logging(log_level="DEBUG", json_logs=True)
    try:
        with caplog.at_level(logging.DEBUG):
            structlog.get_logger("redis_ratelimiter.test").warning(
                "rate_limit_exceeded", key="ratelimit:login:u1", limit=5
            )

        event = json.loads(caplog.records[-1].getMessage())
        assert event["event"] == "rate_limit_exceeded"
        assert event["key"] == "ratelimit:login:u1"
        assert event["limit"] == 5
        assert event["level"] == "warning"
        assert event["logger"] == "redis_ratelimiter.test"
        assert "timestamp" in event
    finally:
        structlog.reset_defaults()


def test_console_logs(caplog):
    configure_logging(log_level="not-a-level", json_logs=False)
    try:
        with caplog.at_level(logging.INFO):
            structlog.get_logger("redis_ratelimiter.test").info("whitelist_entry_added", identifier="u1")

        message = caplog.records[-1].getMessage()
        assert "whitelist_entry_added" in message
        assert "identifier" in message
    finally:
        structlog.reset_defaults()
