from functools import lru_cache

from ..core.config import settings
from .limiter import RateLimiter, build_rate_limiter
from .redis_backend import get_redis

BULK_MAIL_BUCKET = "bulk_mail"


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter for bulk mail sends. Tests override this dependency."""
    redis_client = get_redis() if settings.rate_limit_backend == "redis" else None
    return build_rate_limiter(
        settings.rate_limit_backend,
        limit=settings.bulk_mail_rate_limit,
        window_s=settings.bulk_mail_rate_window_s,
        bucket=BULK_MAIL_BUCKET,
        redis_client=redis_client,
        namespace=settings.rate_limit_namespace,
    )
