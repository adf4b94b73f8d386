import pytest
from pydantic import ValidationError

from redis_ratelimiter.core.config.rate_limiter import RateLimiterSettings
from redis_ratelimiter.core.config.redis import RedisSettings


class TestRateLimiterSettings:
    def test_defaults(self, monkeypatch):
        for name in ("STATIC_WHITELIST", "STATIC_BLACKLIST", "ATOMIC_WINDOW"):
            monkeypatch.delenv(f"RATE_LIMITER_{name}", raising=False)

        settings = RateLimiterSettings(_env_file=None)

        assert settings.whitelist_blacklist_enabled is True
        assert settings.whitelist_key_prefix == "ratelimit:whitelist:"
        assert settings.blacklist_key_prefix == "ratelimit:blacklist:"
        assert settings.static_whitelist == frozenset()
        assert settings.static_blacklist == frozenset()
        assert settings.use_dynamic_lists is True
        assert settings.atomic_window is False

    def test_comma_separated_env_values(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMITER_STATIC_WHITELIST", "admin, health-check ,,monitor")
        monkeypatch.setenv("RATE_LIMITER_STATIC_BLACKLIST", "10.0.0.9")
        monkeypatch.setenv("RATE_LIMITER_ATOMIC_WINDOW", "true")

        settings = RateLimiterSettings(_env_file=None)

        assert settings.static_whitelist == frozenset({"admin", "health-check", "monitor"})
        assert settings.static_blacklist == frozenset({"10.0.0.9"})
        assert settings.atomic_window is True

    def test_sequence_values(self):
        settings = RateLimiterSettings(_env_file=None, static_whitelist=["a", "b", "a"])
        assert settings.static_whitelist == frozenset({"a", "b"})

    def test_is_frozen(self):
        settings = RateLimiterSettings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.use_dynamic_lists = False


class TestRedisSettings:
    def test_assembles_url(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        settings = RedisSettings(
            _env_file=None, REDIS_HOST="cache", REDIS_PORT=6380, REDIS_DB=2, REDIS_PASSWORD="s3cret"
        )
        assert settings.REDIS_URL == "redis://:s3cret@cache:6380/2"

    def test_ssl_scheme(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        settings = RedisSettings(_env_file=None, REDIS_HOST="cache", REDIS_SSL=True)
        assert settings.REDIS_URL == "rediss://cache:6379/0"

    def test_explicit_url_wins(self):
        settings = RedisSettings(_env_file=None, REDIS_URL="redis://elsewhere:7000/1")
        assert settings.REDIS_URL == "redis://elsewhere:7000/1"

    def test_rejects_invalid_port(self):
        with pytest.raises(ValidationError):
            RedisSettings(_env_file=None, REDIS_PORT=70000)
