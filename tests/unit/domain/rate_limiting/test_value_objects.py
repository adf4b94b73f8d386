import pytest

from redis_ratelimiter.domain.rate_limiting.value_objects import (
    DEFAULT_IDENTIFIER,
    InvocationContext,
    RateLimitRule,
    build_key,
)


class TestBuildKey:
    def test_key_layout(self):
        assert build_key("sendOtp", "+15551234567") == "ratelimit:sendOtp:+15551234567"

    def test_default_identifier(self):
        assert build_key("publicData", DEFAULT_IDENTIFIER) == "ratelimit:publicData:default"

    def test_distinct_pairs_give_distinct_keys(self):
        keys = {build_key(b, i) for b in ("a", "b") for i in ("x", "y")}
        assert len(keys) == 4

    def test_colons_are_not_escaped(self):
        # Known limitation: ("a:b", "c") and ("a", "b:c") share a key.
        assert build_key("a:b", "c") == build_key("a", "b:c")


class TestRateLimitRule:
    def test_defaults(self):
        rule = RateLimitRule(limit=3, duration=60)
        assert rule.key == ""
        assert rule.name == ""

    @pytest.mark.parametrize("limit", [0, -1, True, 1.5, "3"])
    def test_rejects_invalid_limit(self, limit):
        with pytest.raises(ValueError):
            RateLimitRule(limit=limit, duration=60)

    @pytest.mark.parametrize("duration", [0, -60, False, 60.0])
    def test_rejects_invalid_duration(self, duration):
        with pytest.raises(ValueError):
            RateLimitRule(limit=3, duration=duration)

    def test_is_immutable(self):
        rule = RateLimitRule(limit=3, duration=60)
        with pytest.raises(AttributeError):
            rule.limit = 10

    def test_bucket_defaults_to_operation_name(self):
        assert RateLimitRule(limit=1, duration=1).bucket_for("sendOtp") == "sendOtp"

    def test_explicit_bucket_name_wins(self):
        rule = RateLimitRule(limit=1, duration=1, name="publicData")
        assert rule.bucket_for("get_public_data") == "publicData"


class TestInvocationContext:
    def test_counter_key(self):
        context = InvocationContext(bucket_name="login", identifier="a@x.com")
        assert context.counter_key == "ratelimit:login:a@x.com"

    def test_identifier_defaults(self):
        assert InvocationContext(bucket_name="login").identifier == "default"

