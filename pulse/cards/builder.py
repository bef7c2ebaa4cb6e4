"""Entry point for metric cards: context + metric id in, MetricCard out."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, NamedTuple

from pulse.cards.registry import CardRegistry, parse_context
from pulse.core.errors import DataUnavailable, InvalidScope
from pulse.core.logger import get_logger
from pulse.core.metrics import CARD_DEGRADED
from pulse.domain.models import MetricCard
from pulse.infrastructure.base import EventStore

logger = get_logger("cards.builder")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CardResult(NamedTuple):
    card: MetricCard
    # True when the store failed and ``card`` is the zeroed stand-in
    degraded: bool = False


class MetricCardBuilder:
    def __init__(
        self,
        events: EventStore,
        registry: CardRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.events = events
        self.registry = registry or CardRegistry()
        self.clock = clock

    def build(self, context: str, metric_id: str, now: datetime | None = None) -> MetricCard:
        """Never raises for bad input or an unreadable store.

        Unknown metric / context and dangling entities yield the
        "Unknown Metric" placeholder; a store failure yields the zeroed card.
        """
        return self.build_result(context, metric_id, now).card

    def build_result(self, context: str, metric_id: str, now: datetime | None = None) -> CardResult:
        """Like ``build`` but also reports whether the card was degraded."""
        log_ctx = {"context": context, "metric_id": metric_id}
        try:
            kind, scope = parse_context(context)
        except InvalidScope:
            logger.info("card_unknown_context", extra=log_ctx)
            return CardResult(self.registry.default.empty_card())

        spec = self.registry.get(kind, metric_id)
        try:
            if scope is not None and not self.events.entity_exists(scope):
                logger.info("card_dangling_entity", extra=log_ctx)
                return CardResult(self.registry.default.empty_card())
            return CardResult(spec.build(scope, self.events, now or self.clock()))
        except DataUnavailable:
            CARD_DEGRADED.labels(builder="card").inc()
            logger.warning("card_degraded", exc_info=True, extra=log_ctx)
            return CardResult(spec.empty_card(), degraded=True)
