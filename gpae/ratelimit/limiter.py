"""
Fixed-window rate limiters.

The in-memory limiter is process-local: counts are lost on restart and
not shared between workers. Use the Redis limiter when more than one
instance serves the API.
"""

from abc import ABC, abstractmethod
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

import redis

from ..core.exceptions import DependencyException
from .decision import Decision, fixed_window_decide
from .metrics import rl_decisions, rl_eval_errors, rl_retry_after

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Counts hits per key and decides whether one more is allowed."""

    def __init__(self, limit: int, window_s: float, bucket: str = "default"):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_s <= 0:
            raise ValueError("window_s must be > 0")
        self.limit = limit
        self.window_s = window_s
        self.bucket = bucket

    @abstractmethod
    def _hit(self, key: str) -> Decision:
        ...

    @abstractmethod
    def reset(self, key: str) -> None:
        ...

    def hit(self, key: str) -> Decision:
        """Record one hit for ``key``. A refused hit is not counted."""
        decision = self._hit(key)
        action = "allow" if decision.allowed else "block"
        rl_decisions.labels(bucket=self.bucket, action=action).inc()
        if not decision.allowed:
            rl_retry_after.labels(bucket=self.bucket).observe(decision.retry_after_s)
            logger.info(f"Rate limit hit for {self.bucket}:{key}, retry in {decision.retry_after_s:.0f}s")
        return decision


class InMemoryRateLimiter(RateLimiter):
    def __init__(
        self,
        limit: int,
        window_s: float,
        bucket: str = "default",
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(limit, window_s, bucket)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}

    def _hit(self, key: str) -> Decision:
        with self._lock:
            start, count = self._windows.get(key, (None, 0))
            start, count, decision = fixed_window_decide(
                self._clock(), start, count, self.limit, self.window_s
            )
            self._windows[key] = (start, count)
            return decision

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)


class RedisRateLimiter(RateLimiter):
    """Fixed window shared through Redis (INCR + EXPIRE)."""

    def __init__(
        self,
        client: redis.Redis,
        limit: int,
        window_s: float,
        bucket: str = "default",
        namespace: str = "gpae",
    ):
        super().__init__(limit, window_s, bucket)
        self.client = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:rl:{self.bucket}:{key}"

    def _hit(self, key: str) -> Decision:
        storage_key = self._key(key)
        window_s = int(self.window_s)
        try:
            pipe = self.client.pipeline()
            pipe.incr(storage_key)
            pipe.ttl(storage_key)
            count, ttl = pipe.execute()
            count = int(count)
            if ttl is None or ttl < 0:
                self.client.expire(storage_key, window_s)
                ttl = window_s
            if count > self.limit:
                # Refused hits must not extend the count
                self.client.decr(storage_key)
        except redis.RedisError as e:
            rl_eval_errors.labels(bucket=self.bucket).inc()
            logger.error(f"Rate limiter backend error for {storage_key}: {str(e)}")
            raise DependencyException("Rate limiter unavailable", code="RATE_LIMITER_UNAVAILABLE") from e

        reset_epoch_s = time.time() + ttl
        if count <= self.limit:
            return Decision(
                True,
                retry_after_s=0.0,
                remaining=self.limit - count,
                limit=self.limit,
                reset_epoch_s=reset_epoch_s,
            )
        return Decision(False, retry_after_s=float(ttl), remaining=0, limit=self.limit, reset_epoch_s=reset_epoch_s)

    def reset(self, key: str) -> None:
        self.client.delete(self._key(key))


def build_rate_limiter(
    backend: str,
    limit: int,
    window_s: float,
    bucket: str,
    redis_client: Optional[redis.Redis] = None,
    namespace: str = "gpae",
) -> RateLimiter:
    if backend == "redis":
        if redis_client is None:
            raise ValueError("redis backend requires a client")
        return RedisRateLimiter(redis_client, limit, window_s, bucket=bucket, namespace=namespace)
    return InMemoryRateLimiter(limit, window_s, bucket=bucket)
