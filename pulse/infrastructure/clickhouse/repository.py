"""ClickHouse-backed event and summary store."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from pulse.core.logger import get_logger
from pulse.domain.models import (
    EntityRef,
    EntityType,
    EventSource,
    PeriodType,
    RawEvent,
    Summary,
)
from pulse.infrastructure.base import EventStore, SummaryStore
from pulse.infrastructure.clickhouse.client import ClickHouseClient
from pulse.infrastructure.clickhouse.ddl import ENTITY_LABEL_COLUMNS, ENTITY_TABLES, EVENT_TABLES

logger = get_logger("clickhouse.repository")

SUMMARY_COLUMNS = (
    "summarizable_type",
    "summarizable_id",
    "period_type",
    "period_start",
    "period_end",
    "avg_duration",
    "max_duration",
    "min_duration",
    "total_duration",
    "p50_duration",
    "p95_duration",
    "p99_duration",
    "stddev_duration",
    "count",
    "error_count",
)


def _to_utc_naive(ts: datetime) -> datetime:
    # The driver formats parameters without an offset; DateTime64 columns are UTC.
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class ClickHouseStore(EventStore, SummaryStore):
    def __init__(self, client: ClickHouseClient):
        self.client = client

    # Raw events
    def events_for(
        self,
        source: EventSource,
        scope: Optional[EntityRef],
        start: datetime,
        end: datetime,
    ) -> List[RawEvent]:
        source = EventSource(source)
        table, id_column = EVENT_TABLES[source.value]
        query = (
            f"SELECT {id_column}, occurred_at, duration, is_error FROM {table} "
            "WHERE occurred_at >= %(start)s AND occurred_at < %(end)s"
        )
        params = {"start": _to_utc_naive(start), "end": _to_utc_naive(end)}
        if scope is not None:
            query += f" AND {id_column} = %(entity_id)s"
            params["entity_id"] = scope.id
        query += " ORDER BY occurred_at"

        rows = self.client.execute(query, params)
        entity_type = source.entity_type
        return [
            RawEvent(
                entity_ref=EntityRef(type=entity_type, id=row[0]),
                occurred_at=_as_utc(row[1]),
                duration_ms=row[2],
                is_error=bool(row[3]),
            )
            for row in rows
        ]

    def entity_exists(self, ref: EntityRef) -> bool:
        if ref.type is EntityType.REQUEST:
            return ref.id == 0
        table = ENTITY_TABLES[ref.type.value]
        rows = self.client.execute(
            f"SELECT count() FROM {table} WHERE id = %(id)s", {"id": ref.id}
        )
        return bool(rows and rows[0][0])

    def entity_labels(self, entity_type: EntityType, ids: Sequence[int]) -> Dict[int, str]:
        entity_type = EntityType(entity_type)
        if not ids or entity_type is EntityType.REQUEST:
            return {}
        table = ENTITY_TABLES[entity_type.value]
        column = ENTITY_LABEL_COLUMNS[entity_type.value]
        rows = self.client.execute(
            f"SELECT id, {column} FROM {table} FINAL WHERE id IN %(ids)s",
            {"ids": tuple(ids)},
        )
        return {row[0]: row[1] for row in rows}

    # Summaries
    def upsert_summaries(self, rows: Sequence[Summary]) -> None:
        if not rows:
            return
        version = time.time_ns() // 1_000_000
        records = []
        for row in rows:
            record = {
                col: getattr(row, col)
                for col in SUMMARY_COLUMNS
            }
            record["summarizable_type"] = row.summarizable_type.value
            record["period_type"] = row.period_type.value
            record["period_start"] = _to_utc_naive(row.period_start)
            record["period_end"] = _to_utc_naive(row.period_end)
            record["version"] = version
            records.append(record)
        self.client.insert_rows("summaries", records)
        logger.debug("summaries_upserted", extra={"rows": len(records)})

    def summaries_for(
        self,
        summarizable_type: EntityType,
        period_type: PeriodType,
        start: datetime,
        end: datetime,
    ) -> List[Summary]:
        query = (
            f"SELECT {', '.join(SUMMARY_COLUMNS)} FROM summaries FINAL "
            "WHERE summarizable_type = %(type)s AND period_type = %(period_type)s "
            "AND period_start >= %(start)s AND period_start < %(end)s "
            "ORDER BY period_start, summarizable_id"
        )
        rows = self.client.execute(
            query,
            {
                "type": EntityType(summarizable_type).value,
                "period_type": PeriodType(period_type).value,
                "start": _to_utc_naive(start),
                "end": _to_utc_naive(end),
            },
        )
        out = []
        for row in rows:
            values = dict(zip(SUMMARY_COLUMNS, row))
            values["period_start"] = _as_utc(values["period_start"])
            values["period_end"] = _as_utc(values["period_end"])
            out.append(Summary(**values))
        return out
