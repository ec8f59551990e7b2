"""Fixed-window rate limiting, in memory or backed by Redis."""

from .decision import Decision, fixed_window_decide
from .dependency import get_rate_limiter
from .headers import apply_decision_headers, set_rate_headers
from .limiter import InMemoryRateLimiter, RateLimiter, RedisRateLimiter

__all__ = [
    "Decision",
    "InMemoryRateLimiter",
    "RateLimiter",
    "RedisRateLimiter",
    "apply_decision_headers",
    "fixed_window_decide",
    "get_rate_limiter",
    "set_rate_headers",
]
