import pytest

from pulse.cards.registry import UNKNOWN_METRIC, CardRegistry, parse_context
from pulse.cards.routes import AverageResponseTimes
from pulse.core.errors import InvalidScope
from pulse.domain.models import EntityType


def test_parse_context():
    assert parse_context("routes") == ("routes", None)
    assert parse_context("requests") == ("requests", None)
    kind, scope = parse_context("query_42")
    assert kind == "queries"
    assert scope.type is EntityType.QUERY
    assert scope.id == 42
    assert str(parse_context("route_7").scope) == "route_7"


@pytest.mark.parametrize("context", ["", "route", "route_", "routes_1", "query_-1", "dashboard"])
def test_parse_context_rejects_unknown(context):
    with pytest.raises(InvalidScope):
        parse_context(context)


def test_lookup_falls_back_to_default_entry():
    registry = CardRegistry()
    assert isinstance(registry.get("routes", "average_response_times"), AverageResponseTimes)
    assert registry.get("queries", "average_response_times") is UNKNOWN_METRIC
    assert registry.get("routes", "nope") is UNKNOWN_METRIC


def test_kind_for_and_metric_ids():
    registry = CardRegistry()
    assert registry.kind_for("execution_rate") == "queries"
    assert registry.kind_for("error_rate") == "requests"
    assert registry.kind_for("nope") is None
    assert registry.metric_ids("routes") == [
        "average_response_times",
        "percentile_response_times",
        "request_count_totals",
        "error_rate_per_route",
    ]


@pytest.mark.parametrize(
    "metric_id",
    [
        "average_response_times",
        "percentile_response_times",
        "request_count_totals",
        "error_rate_per_route",
    ],
)
def test_requests_resolves_route_cards(metric_id):
    registry = CardRegistry()
    assert registry.get("requests", metric_id) is registry.get("routes", metric_id)
    assert registry.kind_for(metric_id) == "routes"
