from prometheus_client import Counter, Histogram

from ..monitoring.prometheus_metrics import REGISTRY

rl_decisions = Counter(
    "gpae_rl_decisions_total",
    "rate-limit decisions",
    ["bucket", "action"],
    registry=REGISTRY,
)
rl_retry_after = Histogram(
    "gpae_rl_retry_after_seconds",
    "retry-after values",
    ["bucket"],
    registry=REGISTRY,
    buckets=(1.0, 10.0, 60.0, 300.0, 900.0, 1800.0, 3600.0),
)
rl_eval_errors = Counter(
    "gpae_rl_eval_errors_total",
    "errors during rate-limit evaluation (e.g., Redis failures)",
    ["bucket"],
    registry=REGISTRY,
)
