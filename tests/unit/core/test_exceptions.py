import pytest

from redis_ratelimiter.core.exceptions import (
    BlacklistedSourceError,
    CounterStateError,
    CounterStoreError,
    ExpressionResolutionError,
    RateLimiterError,
    RateLimitExceededError,
)


def test_rate_limiter_error_default():
    # Arrange
    message = "Something went wrong"

    # Act
    error = RateLimiterError(message)

    # Assert
    assert error.message == message
    assert error.code == "rate_limiter_error"
    assert str(error) == message


def test_rate_limit_exceeded_error():
    # Act
    error = RateLimitExceededError("ratelimit:sendOtp:+1000", 3, 60, 42)

    # Assert
    assert error.code == "rate_limit_exceeded"
    assert (error.key, error.limit, error.duration, error.retry_after_seconds) == (
        "ratelimit:sendOtp:+1000",
        3,
        60,
        42,
    )
    assert str(error) == (
        "Rate limit exceeded for key 'ratelimit:sendOtp:+1000'. "
        "Limit: 3 requests per 60 seconds. Retry after 42 seconds."
    )


def test_blacklisted_source_error():
    # Act
    error = BlacklistedSourceError("blocked@x.com", "login")

    # Assert
    assert error.code == "blacklisted_source"
    assert error.identifier == "blocked@x.com"
    assert error.bucket_name == "login"
    assert str(error) == "Access denied. Identifier 'blocked@x.com' is blacklisted for bucket 'login'."


def test_expression_resolution_error_with_reason():
    error = ExpressionResolutionError("#user.email", "unknown variable '#user'")

    assert error.expression == "#user.email"
    assert str(error) == "Failed to resolve key expression: #user.email (unknown variable '#user')"


def test_expression_resolution_error_without_reason():
    error = ExpressionResolutionError("#p9")
    assert str(error) == "Failed to resolve key expression: #p9"


def test_counter_errors():
    store_error = CounterStoreError("Connection refused")
    state_error = CounterStateError("ratelimit:a:b", None)

    assert store_error.code == "counter_store_unavailable"
    assert state_error.code == "counter_state_error"
    assert state_error.key == "ratelimit:a:b"
    assert "ratelimit:a:b" in str(state_error)


@pytest.mark.parametrize(
    "error",
    [
        RateLimitExceededError("k", 1, 1, 1),
        BlacklistedSourceError("i", "b"),
        ExpressionResolutionError("#x"),
        CounterStoreError("down"),
        CounterStateError("k"),
    ],
)
def test_hierarchy(error):
    assert isinstance(error, RateLimiterError)


def test_denials_are_distinct():
    assert not issubclass(RateLimitExceededError, BlacklistedSourceError)
    assert not issubclass(BlacklistedSourceError, RateLimitExceededError)
    assert not issubclass(CounterStoreError, RateLimitExceededError)
