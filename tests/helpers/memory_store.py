"""In-memory EventStore / SummaryStore used by the unit tests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from pulse.core.errors import CacheBackendFailure, DataUnavailable
from pulse.domain.models import EntityRef, EntityType, EventSource, RawEvent, Summary
from pulse.infrastructure.base import CacheBackend, EventStore, SummaryStore


class InMemoryStore(EventStore, SummaryStore):
    def __init__(self, events: Sequence[RawEvent] = (), entities: Sequence[EntityRef] = ()):
        self.events: List[RawEvent] = list(events)
        self.entities: Set[EntityRef] = set(entities)
        self.summaries: Dict[Tuple, Summary] = {}
        self.labels: Dict[EntityRef, str] = {}
        self.upsert_calls = 0
        self.fail_reads = False
        self.fail_writes = False

    def add(self, *events: RawEvent) -> None:
        self.events.extend(events)
        self.entities.update(e.entity_ref for e in events)

    def events_for(self, source, scope, start, end) -> List[RawEvent]:
        if self.fail_reads:
            raise DataUnavailable("store offline")
        entity_type = EventSource(source).entity_type
        return sorted(
            (
                e
                for e in self.events
                if e.entity_ref.type is entity_type
                and (scope is None or e.entity_ref == scope)
                and start <= e.occurred_at < end
            ),
            key=lambda e: e.occurred_at,
        )

    def entity_exists(self, ref: EntityRef) -> bool:
        if self.fail_reads:
            raise DataUnavailable("store offline")
        if ref.type is EntityType.REQUEST:
            return ref.id == 0
        return ref in self.entities

    def entity_labels(self, entity_type, ids) -> Dict[int, str]:
        if self.fail_reads:
            raise DataUnavailable("store offline")
        return {
            ref.id: label
            for ref, label in self.labels.items()
            if ref.type is entity_type and ref.id in ids
        }

    def upsert_summaries(self, rows: Sequence[Summary]) -> None:
        self.upsert_calls += 1
        if self.fail_writes:
            raise DataUnavailable("store offline")
        for row in rows:
            self.summaries[row.key] = row

    def summaries_for(self, summarizable_type, period_type, start, end) -> List[Summary]:
        return sorted(
            (
                s
                for s in self.summaries.values()
                if s.summarizable_type == summarizable_type
                and s.period_type == period_type
                and start <= s.period_start < end
            ),
            key=lambda s: (s.period_start, s.summarizable_id),
        )


class DictCache(CacheBackend):
    """Cache backend over a plain dict; records TTLs and can be made to fail."""

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False
        self.fail_deletes = False

    def _check(self) -> None:
        if self.fail:
            raise CacheBackendFailure("backend down")

    def read(self, key: str) -> Optional[str]:
        self._check()
        return self.values.get(key)

    def write(self, key: str, value: str, ttl: int) -> None:
        self._check()
        self.values[key] = value
        self.ttls[key] = ttl

    def delete(self, key: str) -> None:
        self._check()
        if self.fail_deletes:
            raise CacheBackendFailure("delete rejected")
        self.values.pop(key, None)
        self.ttls.pop(key, None)
