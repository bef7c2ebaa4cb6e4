from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from pulse.domain.models import EntityRef, EntityType, EventSource, PeriodType
from pulse.infrastructure.clickhouse.repository import SUMMARY_COLUMNS, ClickHouseStore
from pulse.rollup.aggregator import summarize_events
from tests.helpers.factories import make_event, route

EST = timezone(timedelta(hours=-5))


def test_events_for_scopes_and_converts_times():
    client = MagicMock()
    client.execute.return_value = [(4, datetime(2024, 1, 10, 5, 0), 12.5, 1)]
    store = ClickHouseStore(client)

    start = datetime(2024, 1, 10, tzinfo=EST)
    events = store.events_for(EventSource.REQUESTS, EntityRef(type=EntityType.ROUTE, id=4), start, start + timedelta(days=1))

    query, params = client.execute.call_args[0]
    assert "FROM requests" in query
    assert "route_id = %(entity_id)s" in query
    assert params["entity_id"] == 4
    # Parameters are naive UTC
    assert params["start"] == datetime(2024, 1, 10, 5, 0)

    (event,) = events
    assert event.entity_ref == EntityRef(type=EntityType.ROUTE, id=4)
    assert event.occurred_at == datetime(2024, 1, 10, 5, 0, tzinfo=timezone.utc)
    assert event.is_error is True


def test_operations_read_query_table_unscoped():
    client = MagicMock()
    client.execute.return_value = []
    start = datetime(2024, 1, 10, tzinfo=timezone.utc)
    ClickHouseStore(client).events_for(EventSource.OPERATIONS, None, start, start + timedelta(hours=1))

    query, params = client.execute.call_args[0]
    assert "FROM operations" in query
    assert "entity_id" not in params


def test_entity_exists():
    client = MagicMock()
    client.execute.return_value = [(0,)]
    store = ClickHouseStore(client)
    assert store.entity_exists(EntityRef(type=EntityType.QUERY, id=9)) is False
    assert "FROM queries" in client.execute.call_args[0][0]
    assert store.entity_exists(EntityRef(type=EntityType.REQUEST, id=0)) is True


def test_entity_labels_reads_route_paths():
    client = MagicMock()
    client.execute.return_value = [(1, "/users"), (3, "/orders")]
    store = ClickHouseStore(client)

    assert store.entity_labels(EntityType.ROUTE, [1, 2, 3]) == {1: "/users", 3: "/orders"}
    query, params = client.execute.call_args[0]
    assert "SELECT id, path FROM routes FINAL" in query
    assert "IN %(ids)s" in query
    assert params == {"ids": (1, 2, 3)}


def test_entity_labels_skips_empty_lookups():
    client = MagicMock()
    store = ClickHouseStore(client)
    assert store.entity_labels(EntityType.ROUTE, []) == {}
    assert store.entity_labels(EntityType.REQUEST, [0]) == {}
    client.execute.assert_not_called()


def test_upsert_writes_one_versioned_block():
    client = MagicMock()
    start = datetime(2024, 1, 10, tzinfo=EST)
    rows = [
        summarize_events(route(i), PeriodType.DAY, start, start + timedelta(days=1), [make_event(route(i), start, 100)])
        for i in (1, 2)
    ]
    ClickHouseStore(client).upsert_summaries(rows)

    client.insert_rows.assert_called_once()
    table, records = client.insert_rows.call_args[0]
    assert table == "summaries"
    assert len(records) == 2
    assert records[0]["summarizable_type"] == "route"
    assert records[0]["period_type"] == "day"
    assert records[0]["period_start"] == datetime(2024, 1, 10, 5, 0)
    assert records[0]["version"] == records[1]["version"]


def test_summaries_for_reads_final_rows():
    client = MagicMock()
    start = datetime(2024, 1, 10, tzinfo=timezone.utc)
    values = {
        "summarizable_type": "route",
        "summarizable_id": 1,
        "period_type": "hour",
        "period_start": datetime(2024, 1, 10, 3),
        "period_end": datetime(2024, 1, 10, 4),
        "avg_duration": 10.0,
        "max_duration": 10.0,
        "min_duration": 10.0,
        "total_duration": 10.0,
        "p50_duration": 10.0,
        "p95_duration": 10.0,
        "p99_duration": 10.0,
        "stddev_duration": None,
        "count": 1,
        "error_count": 0,
    }
    client.execute.return_value = [tuple(values[c] for c in SUMMARY_COLUMNS)]

    (row,) = ClickHouseStore(client).summaries_for(EntityType.ROUTE, PeriodType.HOUR, start, start + timedelta(days=1))

    assert "FROM summaries FINAL" in client.execute.call_args[0][0]
    assert row.period_start == datetime(2024, 1, 10, 3, tzinfo=timezone.utc)
    assert row.summarizable_type is EntityType.ROUTE
    assert row.stddev_duration is None
