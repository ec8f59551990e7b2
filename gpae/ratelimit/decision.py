import math
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class Decision:
    allowed: bool
    retry_after_s: float
    remaining: int
    limit: int
    reset_epoch_s: float


def fixed_window_decide(
    now_s: float,
    window_start_s: Optional[float],
    count: int,
    limit: int,
    window_s: float,
) -> Tuple[float, int, Decision]:
    """
    Fixed-window counter pure decision function.

    Args:
        now_s: current wall time in seconds (epoch)
        window_start_s: start of the key's current window, or None if new
        count: hits already recorded in that window
        limit: hits permitted per window
        window_s: window length in seconds

    Returns:
        (window_start_s, new_count, Decision)
    """
    if window_start_s is None or now_s >= window_start_s + window_s:
        window_start_s = now_s
        count = 0

    reset_epoch_s = window_start_s + window_s
    if count < limit:
        count += 1
        decision = Decision(
            True, retry_after_s=0.0, remaining=limit - count, limit=limit, reset_epoch_s=reset_epoch_s
        )
        return window_start_s, count, decision

    retry_after = max(0.0, reset_epoch_s - now_s)
    decision = Decision(
        False, retry_after_s=float(math.ceil(retry_after)), remaining=0, limit=limit, reset_epoch_s=reset_epoch_s
    )
    return window_start_s, count, decision
