# tests/ratelimit/test_redis_limiter.py
from unittest.mock import MagicMock

import pytest
import redis

from gpae.core.exceptions import DependencyException
from gpae.ratelimit.limiter import RedisRateLimiter, build_rate_limiter


def _client(count: int, ttl: int) -> MagicMock:
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [count, ttl]
    return client


def test_first_hit_sets_expiry():
    client = _client(count=1, ttl=-1)
    limiter = RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail", namespace="gpae")

    decision = limiter.hit("admin@example.com")

    assert decision.allowed is True
    assert decision.remaining == 2
    pipe = client.pipeline.return_value
    pipe.incr.assert_called_once_with("gpae:rl:bulk_mail:admin@example.com")
    pipe.ttl.assert_called_once_with("gpae:rl:bulk_mail:admin@example.com")
    client.expire.assert_called_once_with("gpae:rl:bulk_mail:admin@example.com", 3600)


def test_hit_inside_window_keeps_expiry():
    client = _client(count=3, ttl=1200)
    limiter = RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail")

    decision = limiter.hit("admin@example.com")

    assert decision.allowed is True
    assert decision.remaining == 0
    client.expire.assert_not_called()


def test_over_limit_is_refused_and_not_counted():
    client = _client(count=4, ttl=1200)
    limiter = RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail")

    decision = limiter.hit("admin@example.com")

    assert decision.allowed is False
    assert decision.retry_after_s == 1200
    client.decr.assert_called_once_with("gpae:rl:bulk_mail:admin@example.com")


def test_backend_error_is_a_dependency_failure():
    client = MagicMock()
    client.pipeline.return_value.execute.side_effect = redis.ConnectionError("refused")
    limiter = RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail")

    with pytest.raises(DependencyException) as exc_info:
        limiter.hit("admin@example.com")
    assert exc_info.value.code == "RATE_LIMITER_UNAVAILABLE"


def test_backend_error_while_undoing_refused_hit():
    client = _client(count=4, ttl=1200)
    client.decr.side_effect = redis.ConnectionError("refused")
    limiter = RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail")

    with pytest.raises(DependencyException) as exc_info:
        limiter.hit("admin@example.com")
    assert exc_info.value.code == "RATE_LIMITER_UNAVAILABLE"


def test_reset_deletes_key():
    client = MagicMock()
    RedisRateLimiter(client, limit=3, window_s=3600, bucket="bulk_mail", namespace="ns").reset("k")

    client.delete.assert_called_once_with("ns:rl:bulk_mail:k")


def test_build_rate_limiter_redis():
    client = MagicMock()

    limiter = build_rate_limiter("redis", limit=3, window_s=3600, bucket="bulk_mail", redis_client=client)

    assert isinstance(limiter, RedisRateLimiter)
    assert limiter.client is client
