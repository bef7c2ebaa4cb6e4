"""Lookup of card specs by (context kind, metric id).

Contexts arrive as strings from the presentation layer: ``routes`` /
``route_<id>``, ``queries`` / ``query_<id>`` and ``requests``.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

from pulse.cards.base import CardWindow, MetricCardSpec
from pulse.cards.queries import AverageQueryTimes, ExecutionRate, PercentileQueryTimes
from pulse.cards.requests import ErrorRate
from pulse.cards.routes import (
    AverageResponseTimes,
    ErrorRatePerRoute,
    PercentileResponseTimes,
    RequestCountTotals,
)
from pulse.core.errors import InvalidScope
from pulse.domain.models import UNKNOWN_METRIC_CARD, EntityRef, EntityType, MetricCard, RawEvent

ROUTES = "routes"
QUERIES = "queries"
REQUESTS = "requests"

_SCOPED_CONTEXT = re.compile(r"^(route|query)_(\d+)$")
_KIND_BY_ENTITY = {"route": (ROUTES, EntityType.ROUTE), "query": (QUERIES, EntityType.QUERY)}


class CardContext(NamedTuple):
    kind: str
    scope: Optional[EntityRef]


def parse_context(context: str) -> CardContext:
    """Split a context string into its kind and optional entity scope.

    Raises InvalidScope for anything that is not a known context.
    """
    if context in (ROUTES, QUERIES, REQUESTS):
        return CardContext(context, None)
    match = _SCOPED_CONTEXT.match(context or "")
    if not match:
        raise InvalidScope(f"unknown context {context!r}")
    kind, entity_type = _KIND_BY_ENTITY[match.group(1)]
    return CardContext(kind, EntityRef(type=entity_type, id=int(match.group(2))))


class UnknownMetricSpec(MetricCardSpec):
    """Default entry: every unregistered (context, metric id) pair lands here."""

    metric_id = "unknown"
    title = UNKNOWN_METRIC_CARD.title
    unit = ""
    source = None

    def statistic(self, window: CardWindow) -> float:
        return 0

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return 0

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return 0

    def empty_card(self) -> MetricCard:
        return UNKNOWN_METRIC_CARD.model_copy(deep=True)

    def compute(self, window: CardWindow) -> MetricCard:
        return self.empty_card()

    def build(self, scope, events, now) -> MetricCard:
        return self.empty_card()


UNKNOWN_METRIC = UnknownMetricSpec()


ROUTE_SPECS: Tuple[MetricCardSpec, ...] = (
    AverageResponseTimes(),
    PercentileResponseTimes(),
    RequestCountTotals(),
    ErrorRatePerRoute(),
)

# The requests page shows the route cards across every route.
DEFAULT_SPECS: Dict[str, Tuple[MetricCardSpec, ...]] = {
    ROUTES: ROUTE_SPECS,
    REQUESTS: (*ROUTE_SPECS, ErrorRate()),
    QUERIES: (
        AverageQueryTimes(),
        PercentileQueryTimes(),
        ExecutionRate(),
    ),
}


class CardRegistry:
    def __init__(
        self,
        specs: Dict[str, Iterable[MetricCardSpec]] | None = None,
        default: MetricCardSpec = UNKNOWN_METRIC,
    ):
        self.default = default
        self._specs: Dict[Tuple[str, str], MetricCardSpec] = {}
        for kind, kind_specs in (specs or DEFAULT_SPECS).items():
            for spec in kind_specs:
                self.register(kind, spec)

    def register(self, kind: str, spec: MetricCardSpec) -> None:
        self._specs[(kind, spec.metric_id)] = spec

    def get(self, kind: str, metric_id: str) -> MetricCardSpec:
        return self._specs.get((kind, metric_id), self.default)

    def metric_ids(self, kind: str) -> list[str]:
        return [metric_id for (k, metric_id) in self._specs if k == kind]

    def kind_for(self, metric_id: str) -> Optional[str]:
        """First context kind that serves ``metric_id``."""
        for kind, registered in self._specs:
            if registered == metric_id:
                return kind
        return None
