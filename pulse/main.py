"""Command line entrypoint for rollup runs.

    python -m pulse.main rollup --period hour --at 2024-01-08T10:00:00+00:00
    python -m pulse.main backfill --start 2024-01-01T00:00:00+00:00 --end 2024-01-07T23:00:00+00:00
    python -m pulse.main run-due [--at <iso>]

Scheduling is external: cron (or any trigger) calls ``run-due`` hourly.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from typing import List, Optional

from prometheus_client import start_http_server

from pulse.core.config import settings
from pulse.core.errors import DataUnavailable
from pulse.core.logger import configure_logging, get_logger
from pulse.domain.models import PeriodType
from pulse.infrastructure.clickhouse.client import DRIVER_ERRORS, ClickHouseClient
from pulse.infrastructure.clickhouse.repository import ClickHouseStore
from pulse.rollup.aggregator import RollupAggregator
from pulse.rollup.backfill import backfill
from pulse.rollup.schedule import due_periods
from shared.utils.retry import retry

logger = get_logger("app")


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        ts = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}") from exc
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pulse", description="Performance summary rollups")
    parser.add_argument("--metrics-port", type=int, default=settings.metrics_port)
    sub = parser.add_subparsers(dest="command", required=True)

    rollup = sub.add_parser("rollup", help="Summarize one hour or day")
    rollup.add_argument("--period", choices=[p.value for p in PeriodType], required=True)
    rollup.add_argument("--at", type=parse_timestamp, required=True)

    fill = sub.add_parser("backfill", help="Summarize every period in a range")
    fill.add_argument("--start", type=parse_timestamp, required=True)
    fill.add_argument("--end", type=parse_timestamp, required=True)
    fill.add_argument(
        "--period",
        action="append",
        choices=[p.value for p in PeriodType],
        help="Repeatable; defaults to the configured rollup period types",
    )

    due = sub.add_parser("run-due", help="Summarize the periods completed before --at")
    due.add_argument("--at", type=parse_timestamp, default=None)
    return parser


def connect() -> ClickHouseClient:
    def _on_retry(attempt: int, exc: BaseException, delay: float) -> None:
        logger.warning(
            "clickhouse_connect_retry",
            extra={"attempt": attempt, "delay": round(delay, 2), "error": str(exc)},
        )

    return retry(
        ClickHouseClient,
        retries=settings.connect_retries,
        retry_on=(DataUnavailable, *DRIVER_ERRORS),
        on_retry=_on_retry,
    )


def run(args: argparse.Namespace, aggregator: RollupAggregator) -> int:
    if args.command == "rollup":
        results = [aggregator.run(PeriodType(args.period), args.at)]
    elif args.command == "backfill":
        results = backfill(aggregator, args.start, args.end, period_types=args.period)
    else:
        trigger = args.at or datetime.now(timezone.utc)
        results = [aggregator.run(pt, anchor) for pt, anchor in due_periods(trigger)]

    logger.info(
        "rollup_command_finished",
        extra={
            "command": args.command,
            "periods": len(results),
            "rows": sum(r.total_rows for r in results),
        },
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    if args.metrics_port:
        start_http_server(args.metrics_port)
        logger.info("metrics_listening", extra={"port": args.metrics_port})

    client = connect()
    try:
        store = ClickHouseStore(client)
        return run(args, RollupAggregator(store, store))
    except DataUnavailable:
        logger.error("rollup_command_failed", extra={"command": args.command})
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
