"""Deterministic digests for cache keys.

MD5 is used for stability across processes (``hash()`` is salted per
interpreter), not for security.
"""

import hashlib
from typing import Any, Dict, Mapping, Tuple

DIMENSION_SEPARATOR = "|"
KV_SEPARATOR = "="


def stable_dimensions_tuple(dimensions: Mapping[str, Any]) -> Tuple[Tuple[str, str], ...]:
    return tuple(sorted((str(k), _canonical(v)) for k, v in dimensions.items()))


def _canonical(value: Any) -> str:
    if isinstance(value, Mapping):
        inner = DIMENSION_SEPARATOR.join(
            f"{k}{KV_SEPARATOR}{v}" for k, v in stable_dimensions_tuple(value)
        )
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def filters_digest(filters: Dict[str, Any] | None) -> str:
    """Content hash of a resolved filter set; key order does not matter."""
    joined = DIMENSION_SEPARATOR.join(
        f"{k}{KV_SEPARATOR}{v}" for k, v in stable_dimensions_tuple(filters or {})
    )
    return hashlib.md5(joined.encode("utf-8")).hexdigest()


def jitter_offset(metric_id: str, cache_duration_seconds: int, fraction: float = 0.25) -> int:
    """Per-metric offset in ``[0, fraction * cache_duration)`` seconds.

    Added to the clock before bucketing so metrics sharing a nominal TTL
    roll over at different moments.
    """
    max_jitter = int(cache_duration_seconds * fraction)
    if max_jitter <= 0:
        return 0
    return int(hashlib.md5(metric_id.encode("utf-8")).hexdigest(), 16) % max_jitter
