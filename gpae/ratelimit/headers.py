from fastapi import Response

from .decision import Decision


def set_rate_headers(res: Response, remaining: int, limit: int, reset_epoch_s: float, retry_after_s: float | None):
    res.headers["X-RateLimit-Remaining"] = str(max(remaining, 0))
    res.headers["X-RateLimit-Limit"] = str(limit)
    res.headers["X-RateLimit-Reset"] = str(int(reset_epoch_s))
    if retry_after_s and retry_after_s > 0:
        res.headers["Retry-After"] = str(int(retry_after_s))


def apply_decision_headers(res: Response, decision: Decision) -> None:
    set_rate_headers(
        res,
        remaining=decision.remaining,
        limit=decision.limit,
        reset_epoch_s=decision.reset_epoch_s,
        retry_after_s=None if decision.allowed else decision.retry_after_s,
    )
