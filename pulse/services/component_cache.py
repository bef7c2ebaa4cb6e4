"""Two-part cache for dashboard components.

An entry holds the expensive ``data`` a component renders and the cheap UI
``options`` it was declared with. The two halves are written at different
times (options when the page skeleton renders, data when the component
loads) and neither write may erase the other.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from pulse.cards.builder import MetricCardBuilder, utc_now
from pulse.charts.dashboard import CHARTS, DashboardChartBuilder
from pulse.core.config import settings
from pulse.core.errors import CacheBackendFailure
from pulse.core.logger import get_logger
from pulse.core.metrics import CACHE_BACKEND_ERRORS, CACHE_HITS, CACHE_MISSES
from pulse.domain.models import UNKNOWN_METRIC_CARD, ComponentPayload
from pulse.infrastructure.base import CacheBackend
from shared.constants import CacheKeys

logger = get_logger("services.component_cache")

CACHED_AT_FIELD = "cached_at_value"


class ComponentDataSource:
    """Computes the ``data`` half for a component id."""

    def __init__(self, cards: MetricCardBuilder, charts: DashboardChartBuilder):
        self.cards = cards
        self.charts = charts

    def compute(
        self, component_id: str, context: Optional[str], now: datetime
    ) -> Tuple[Any, bool]:
        """Return ``(data, degraded)``; degraded data must not be cached."""
        if component_id in CHARTS:
            chart = self.charts.build_result(component_id, now=now)
            return chart.data, chart.degraded
        kind = self.cards.registry.kind_for(component_id)
        if kind is None:
            return UNKNOWN_METRIC_CARD.model_dump(), False
        # Without a context a card covers every entity of its kind.
        card, degraded = self.cards.build_result(context or kind, component_id, now=now)
        return card.model_dump(), degraded


def expires_in(duration: int | None = None, rng: random.Random | None = None) -> int:
    """Nominal duration plus up to ``cache_jitter_fraction`` of random jitter."""
    duration = settings.component_cache_duration_seconds if duration is None else duration
    max_jitter = int(duration * settings.cache_jitter_fraction)
    if max_jitter <= 0:
        return duration
    return duration + (rng or random).randrange(max_jitter)


def stamp_cached_at(options: Dict[str, Any], cached_at: datetime) -> None:
    """Re-stamp refresh actions so the UI shows when data was computed."""
    for action in options.get("actions") or []:
        data = action.get("data") if isinstance(action, dict) else None
        if data and data.get(CACHED_AT_FIELD):
            data[CACHED_AT_FIELD] = cached_at.isoformat()


class ComponentCache:
    def __init__(
        self,
        backend: CacheBackend,
        source: ComponentDataSource,
        duration_seconds: int | None = None,
        options_ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        self.backend = backend
        self.source = source
        self.duration = duration_seconds or settings.component_cache_duration_seconds
        self.options_ttl = options_ttl_seconds or settings.component_options_ttl_seconds
        self.clock = clock
        self.rng = rng

    @staticmethod
    def cache_key(component_id: str, context: Optional[str] = None) -> str:
        return CacheKeys.component_key(component_id, context)

    def expires_in(self) -> int:
        return expires_in(self.duration, self.rng)

    def register_options(
        self, component_id: str, context: Optional[str], options: Dict[str, Any]
    ) -> ComponentPayload:
        """Record UI options ahead of the data.

        An entry that already carries data keeps it; otherwise a short-lived
        options-only skeleton entry is written.
        """
        key = self.cache_key(component_id, context)
        existing = self._read(key)
        if existing is not None and existing.has_data:
            payload = ComponentPayload(
                data=existing.data,
                options={**(existing.options or {}), **options},
                cached_at=existing.cached_at,
            )
            self._write(key, payload, self.expires_in())
        else:
            payload = ComponentPayload(options=dict(options))
            self._write(key, payload, self.options_ttl)
        return payload

    def fetch(
        self, component_id: str, context: Optional[str] = None, refresh: bool = False
    ) -> ComponentPayload:
        """Return the component payload, computing ``data`` when missing.

        ``refresh`` always recomputes, carrying stored options into the new
        entry. Data computed while the store is unavailable is returned but
        not cached.
        """
        key = self.cache_key(component_id, context)
        log_ctx = {"component_id": component_id, "context": context}

        cached = self._read(key)
        if refresh:
            self._delete(key)
        elif cached is not None and cached.has_data:
            CACHE_HITS.labels(cache="component").inc()
            return cached.model_copy(update={"options": cached.options or {}})

        CACHE_MISSES.labels(cache="component").inc()
        now = self.clock()
        data, degraded = self.source.compute(component_id, context, now)
        payload = ComponentPayload(
            data=data,
            options=dict((cached.options if cached else None) or {}),
            cached_at=now,
        )
        if refresh:
            stamp_cached_at(payload.options, now)
        if degraded:
            logger.warning("component_cache_skip_degraded", extra=log_ctx)
            return payload
        self._write(key, payload, self.expires_in())
        logger.info("component_cache_filled", extra={**log_ctx, "refresh": refresh})
        return payload

    def _read(self, key: str) -> Optional[ComponentPayload]:
        try:
            raw = self.backend.read(key)
        except CacheBackendFailure:
            CACHE_BACKEND_ERRORS.inc()
            logger.warning("component_cache_read_failed", exc_info=True, extra={"cache_key": key})
            return None
        if raw is None:
            return None
        try:
            return ComponentPayload.model_validate_json(raw)
        except ValidationError:
            logger.warning("component_cache_entry_invalid", extra={"cache_key": key})
            return None

    def _write(self, key: str, payload: ComponentPayload, ttl: int) -> None:
        try:
            self.backend.write(key, payload.model_dump_json(), ttl)
        except CacheBackendFailure:
            CACHE_BACKEND_ERRORS.inc()
            logger.warning("component_cache_write_failed", exc_info=True, extra={"cache_key": key})

    def _delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except CacheBackendFailure:
            CACHE_BACKEND_ERRORS.inc()
            logger.warning("component_cache_delete_failed", exc_info=True, extra={"cache_key": key})
