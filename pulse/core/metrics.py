from shared.metrics import get_counter, get_histogram

SERVICE = "pulse"

ROLLUP_RUNS = get_counter(
    "rollup_runs", "Completed rollup invocations", SERVICE, labelnames=("period_type",)
)
ROLLUP_FAILURES = get_counter(
    "rollup_failures", "Aborted rollup invocations", SERVICE, labelnames=("period_type",)
)
ROLLUP_ROWS = get_counter(
    "rollup_rows", "Summary rows written", SERVICE, labelnames=("summarizable_type",)
)
ROLLUP_DURATION = get_histogram(
    "rollup_duration_seconds",
    "Wall time of one rollup invocation",
    SERVICE,
    buckets=[0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60],
)

CACHE_HITS = get_counter("cache_hits", "Cache hits", SERVICE, labelnames=("cache",))
CACHE_MISSES = get_counter("cache_misses", "Cache misses", SERVICE, labelnames=("cache",))
CACHE_BACKEND_ERRORS = get_counter(
    "cache_backend_errors", "Cache backend failures treated as misses", SERVICE
)

CARD_DEGRADED = get_counter(
    "card_degraded",
    "Cards or charts served as neutral output after a read failure",
    SERVICE,
    labelnames=("builder",),
)
