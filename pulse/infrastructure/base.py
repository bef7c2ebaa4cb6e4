"""Store interfaces the engine reads from and writes to.

The rollup, card and chart code only see these abstractions; the ClickHouse
adapter and the test helpers implement them.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pulse.domain.models import EntityRef, EntityType, EventSource, PeriodType, RawEvent, Summary


class EventStore(ABC):
    @abstractmethod
    def events_for(
        self,
        source: EventSource,
        scope: Optional[EntityRef],
        start: datetime,
        end: datetime,
    ) -> List[RawEvent]:
        """Events of ``source`` in ``[start, end)`` ordered by occurred_at.

        ``scope`` of None means every entity of the source.
        Raises DataUnavailable when the store cannot be read.
        """

    @abstractmethod
    def entity_exists(self, ref: EntityRef) -> bool:
        """Whether a route / query with this id is registered."""

    @abstractmethod
    def entity_labels(self, entity_type: EntityType, ids: Sequence[int]) -> Dict[int, str]:
        """Display label per id: the path of a route, the SQL of a query.

        Ids that are not registered are absent from the result.
        """


class SummaryStore(ABC):
    @abstractmethod
    def upsert_summaries(self, rows: Sequence[Summary]) -> None:
        """Replace the rows sharing each row's natural key, all or nothing."""

    @abstractmethod
    def summaries_for(
        self,
        summarizable_type: EntityType,
        period_type: PeriodType,
        start: datetime,
        end: datetime,
    ) -> List[Summary]:
        """Rows whose period_start falls in ``[start, end)``."""


class CacheBackend(ABC):
    """TTL-capable key/value store holding serialized cache payloads.

    Implementations raise CacheBackendFailure on any backend error.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def write(self, key: str, value: str, ttl: int) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...
