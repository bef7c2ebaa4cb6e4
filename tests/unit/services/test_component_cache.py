import json
import random
from datetime import timedelta

import pytest

from pulse.cards.builder import MetricCardBuilder
from pulse.charts.dashboard import DashboardChartBuilder
from pulse.services.component_cache import (
    CACHED_AT_FIELD,
    ComponentCache,
    ComponentDataSource,
    expires_in,
)
from tests.helpers.factories import NOW, make_event, route

DURATION = 600


def refresh_action(stamp="2024-01-01T00:00:00+00:00"):
    return {
        "url": "/cache?id=average_response_times&refresh=true",
        "icon": "refresh-cw",
        "data": {CACHED_AT_FIELD: stamp, "turbo_frame": "average_response_times_panel"},
    }


@pytest.fixture
def components(cache, store, five_requests):
    store.add(*five_requests)
    clock = lambda: NOW  # noqa: E731
    source = ComponentDataSource(
        MetricCardBuilder(store, clock=clock), DashboardChartBuilder(store, clock=clock)
    )
    return ComponentCache(
        cache,
        source,
        duration_seconds=DURATION,
        options_ttl_seconds=300,
        clock=clock,
        rng=random.Random(7),
    )


def stored(cache, key):
    return json.loads(cache.values[key])


def test_key_layout():
    assert ComponentCache.cache_key("execution_rate", "query_3") == "pulse_component:execution_rate:query_3"
    assert ComponentCache.cache_key("dashboard_p95_response_time") == "pulse_component:dashboard_p95_response_time"


def test_expires_in_adds_bounded_jitter():
    rng = random.Random(1)
    for _ in range(50):
        assert 1000 <= expires_in(1000, rng) < 1250
    assert expires_in(2) == 2


def test_fetch_fills_cache(components, cache):
    payload = components.fetch("average_response_times", "route_1")
    assert payload.data["summary_text"] == "150 ms"
    assert payload.cached_at == NOW
    assert payload.options == {}

    key = components.cache_key("average_response_times", "route_1")
    assert DURATION <= cache.ttls[key] < DURATION * 1.25


def test_fetch_without_context_uses_component_kind(components):
    payload = components.fetch("average_response_times")
    assert payload.data["summary_text"] == "150 ms"


def test_register_options_writes_short_lived_skeleton(components, cache):
    components.register_options("average_response_times", "route_1", {"title": "Avg"})
    key = components.cache_key("average_response_times", "route_1")
    assert cache.ttls[key] == 300
    assert stored(cache, key)["data"] is None


def test_lazy_fill_keeps_registered_options(components, cache):
    components.register_options("average_response_times", "route_1", {"title": "Avg"})
    payload = components.fetch("average_response_times", "route_1")

    assert payload.data["summary_text"] == "150 ms"
    assert payload.options == {"title": "Avg"}
    key = components.cache_key("average_response_times", "route_1")
    assert stored(cache, key)["options"] == {"title": "Avg"}


def test_register_options_keeps_existing_data(components, cache):
    components.fetch("average_response_times", "route_1")
    components.register_options("average_response_times", "route_1", {"title": "Avg"})

    key = components.cache_key("average_response_times", "route_1")
    entry = stored(cache, key)
    assert entry["data"]["summary_text"] == "150 ms"
    assert entry["options"] == {"title": "Avg"}


def test_refresh_recomputes_data_and_carries_options(components, store):
    options = {"title": "Avg", "actions": [refresh_action(), {"url": "/other"}]}
    components.register_options("average_response_times", "route_1", options)
    components.fetch("average_response_times", "route_1")

    store.add(make_event(route(1), NOW - timedelta(minutes=1), 750))
    payload = components.fetch("average_response_times", "route_1", refresh=True)

    assert payload.data["summary_text"] == "250 ms"
    assert payload.options["title"] == "Avg"
    assert len(payload.options["actions"]) == 2
    assert payload.options["actions"][0]["data"][CACHED_AT_FIELD] == NOW.isoformat()
    assert payload.options["actions"][1] == {"url": "/other"}


def test_hit_does_not_recompute(components, store):
    first = components.fetch("average_response_times", "route_1")
    store.add(make_event(route(1), NOW - timedelta(minutes=1), 750))
    assert components.fetch("average_response_times", "route_1").data == first.data


def test_chart_components(components):
    payload = components.fetch("dashboard_p95_response_time")
    assert len(payload.data) == 15


def test_unknown_component_gets_placeholder(components):
    payload = components.fetch("dashboard_slow_routes")
    assert payload.data["title"] == "Unknown Metric"
    assert payload.data["summary_text"] == "N/A"


def test_backend_failure_still_serves(components, cache):
    cache.fail = True
    payload = components.fetch("average_response_times", "route_1", refresh=True)
    assert payload.data["summary_text"] == "150 ms"


def test_degraded_data_is_not_cached(components, cache, store):
    store.fail_reads = True
    payload = components.fetch("average_response_times", "route_1")
    assert payload.data["summary_text"] == "0 ms"
    assert cache.values == {}

    store.fail_reads = False
    payload = components.fetch("average_response_times", "route_1")
    assert payload.data["summary_text"] == "150 ms"
    key = components.cache_key("average_response_times", "route_1")
    assert stored(cache, key)["data"]["summary_text"] == "150 ms"


def test_degraded_chart_is_not_cached(components, cache, store):
    store.fail_reads = True
    assert components.fetch("dashboard_average_response_time").data == {}
    assert cache.values == {}


def test_refresh_recomputes_when_delete_fails(components, cache, store):
    components.register_options("average_response_times", "route_1", {"title": "Avg"})
    components.fetch("average_response_times", "route_1")
    store.add(make_event(route(1), NOW - timedelta(minutes=1), 750))
    cache.fail_deletes = True

    payload = components.fetch("average_response_times", "route_1", refresh=True)
    assert payload.data["summary_text"] == "250 ms"
    assert payload.options == {"title": "Avg"}

    key = components.cache_key("average_response_times", "route_1")
    assert stored(cache, key)["data"]["summary_text"] == "250 ms"
    assert components.fetch("average_response_times", "route_1").data["summary_text"] == "250 ms"
