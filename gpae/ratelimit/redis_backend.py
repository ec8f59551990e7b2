import redis

from ..core.config import settings


def get_redis(url: str | None = None) -> redis.Redis:
    return redis.Redis.from_url(url or settings.redis_url, decode_responses=True)


__all__ = ["get_redis"]
