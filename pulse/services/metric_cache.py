"""Read-through cache for metric cards.

Keys roll over once per cache duration. Each metric id shifts the clock by
a fixed per-metric jitter before bucketing, so cards that share a nominal
duration expire at different moments instead of all at once.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from pulse.cards.builder import MetricCardBuilder, utc_now
from pulse.core.config import settings
from pulse.core.errors import CacheBackendFailure
from pulse.core.logger import get_logger
from pulse.core.metrics import CACHE_BACKEND_ERRORS, CACHE_HITS, CACHE_MISSES
from pulse.domain.models import CacheEntry, MetricCard
from pulse.infrastructure.base import CacheBackend
from pulse.metrics.key_hash import filters_digest, jitter_offset
from shared.constants import CacheKeys

logger = get_logger("services.metric_cache")

Filters = Union[Mapping[str, Any], str, None]


class MetricCache:
    def __init__(
        self,
        backend: CacheBackend,
        builder: MetricCardBuilder,
        duration_seconds: int | None = None,
        enabled: bool | None = None,
        namespace: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.backend = backend
        self.builder = builder
        self.duration = duration_seconds or settings.metric_cache_duration_seconds
        self.enabled = settings.metric_cache_enabled if enabled is None else enabled
        self.namespace = namespace or settings.cache_namespace
        self.clock = clock

    def jitter(self, metric_id: str) -> int:
        return jitter_offset(metric_id, self.duration, settings.cache_jitter_fraction)

    def period_bucket(self, metric_id: str, now: datetime) -> int:
        return int(now.timestamp() + self.jitter(metric_id)) // self.duration

    def cache_key(
        self, context: str, metric_id: str, filters: Filters = None, now: Optional[datetime] = None
    ) -> str:
        """Key for the card as of ``now``.

        ``filters`` is either the resolved filter mapping or its digest.
        """
        now = now or self.clock()
        digest = filters if isinstance(filters, str) else filters_digest(filters)
        return CacheKeys.metric_key(
            context,
            metric_id,
            self.period_bucket(metric_id, now),
            digest,
            namespace=self.namespace,
        )

    def fetch(self, context: str, metric_id: str, filters: Filters = None) -> MetricCard:
        now = self.clock()
        if not self.enabled:
            return self.builder.build(context, metric_id, now=now)

        key = self.cache_key(context, metric_id, filters, now)
        cached = self._read(key)
        if cached is not None:
            CACHE_HITS.labels(cache="metric").inc()
            return cached

        CACHE_MISSES.labels(cache="metric").inc()
        card, degraded = self.builder.build_result(context, metric_id, now=now)
        if degraded:
            logger.warning("metric_cache_skip_degraded", extra={"cache_key": key})
            return card
        entry = CacheEntry(
            key=key,
            payload=card.model_dump(),
            expires_at=now + timedelta(seconds=self.duration),
            jitter_offset=self.jitter(metric_id),
        )
        self._write(key, entry)
        return card

    def _read(self, key: str) -> Optional[MetricCard]:
        try:
            raw = self.backend.read(key)
        except CacheBackendFailure:
            CACHE_BACKEND_ERRORS.inc()
            logger.warning("metric_cache_read_failed", exc_info=True, extra={"cache_key": key})
            return None
        if raw is None:
            return None
        try:
            return MetricCard.model_validate(CacheEntry.model_validate_json(raw).payload)
        except ValidationError:
            logger.warning("metric_cache_entry_invalid", extra={"cache_key": key})
            return None

    def _write(self, key: str, entry: CacheEntry) -> None:
        try:
            self.backend.write(key, entry.model_dump_json(), self.duration)
        except CacheBackendFailure:
            CACHE_BACKEND_ERRORS.inc()
            logger.warning("metric_cache_write_failed", exc_info=True, extra={"cache_key": key})
