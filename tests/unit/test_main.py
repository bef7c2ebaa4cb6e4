import argparse
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from pulse import main as cli
from pulse.core.errors import DataUnavailable
from pulse.rollup.aggregator import RollupAggregator
from tests.helpers.factories import make_event, route


def test_parse_timestamp_defaults_to_utc():
    assert cli.parse_timestamp("2024-01-10T03:00:00") == datetime(2024, 1, 10, 3, tzinfo=timezone.utc)
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_timestamp("yesterday")


def test_rollup_command(store):
    at = datetime(2024, 1, 10, 3, 30, tzinfo=timezone.utc)
    store.add(make_event(route(1), at, 100))
    args = cli.build_parser().parse_args(["rollup", "--period", "hour", "--at", at.isoformat()])

    assert cli.run(args, RollupAggregator(store, store)) == 0
    assert len(store.summaries) == 2


def test_backfill_command(store):
    start = datetime(2024, 1, 10, tzinfo=timezone.utc)
    store.add(make_event(route(1), start + timedelta(hours=1), 100))
    args = cli.build_parser().parse_args(
        ["backfill", "--start", start.isoformat(), "--end", (start + timedelta(hours=2)).isoformat(), "--period", "day"]
    )
    assert cli.run(args, RollupAggregator(store, store)) == 0
    assert {key[2].value for key in store.summaries} == {"day"}


def test_main_returns_error_code_when_store_fails():
    client = MagicMock()
    with patch.object(cli, "connect", return_value=client), patch.object(cli, "configure_logging"), patch.object(
        cli, "ClickHouseStore"
    ) as store_cls:
        store_cls.return_value.events_for.side_effect = DataUnavailable("down")
        code = cli.main(["rollup", "--period", "day", "--at", "2024-01-10T00:00:00+00:00"])
    assert code == 1
    client.close.assert_called_once()
