from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PeriodType(str, Enum):
    HOUR = "hour"
    DAY = "day"


class EntityType(str, Enum):
    ROUTE = "route"
    QUERY = "query"
    # System-wide pseudo entity for the overall request rollup (id 0)
    REQUEST = "request"


class EventSource(str, Enum):
    """Raw event tables and the entity type each one is keyed by."""

    REQUESTS = "requests"
    OPERATIONS = "operations"

    @property
    def entity_type(self) -> EntityType:
        return EntityType.ROUTE if self is EventSource.REQUESTS else EntityType.QUERY


class EntityRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EntityType
    id: int

    def __str__(self) -> str:
        return f"{self.type.value}_{self.id}"


OVERALL_REQUESTS = EntityRef(type=EntityType.REQUEST, id=0)


class RawEvent(BaseModel):
    """One instrumented request or SQL operation. Written by the collector."""

    model_config = ConfigDict(frozen=True)

    entity_ref: EntityRef
    occurred_at: datetime
    duration_ms: float = Field(ge=0)
    is_error: bool = False

    @field_validator("occurred_at")
    @classmethod
    def _zoned(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("occurred_at must carry a timezone")
        return v


class Summary(BaseModel):
    """One rollup row: a single entity over one hour or day."""

    summarizable_type: EntityType
    summarizable_id: int
    period_type: PeriodType
    period_start: datetime
    period_end: datetime
    avg_duration: float
    max_duration: float
    count: int
    error_count: int
    min_duration: float
    total_duration: float
    p50_duration: float
    p95_duration: float
    p99_duration: float
    stddev_duration: Optional[float] = None

    @property
    def key(self) -> tuple:
        return (
            self.summarizable_type,
            self.summarizable_id,
            self.period_type,
            self.period_start,
        )


TrendIcon = Literal["up", "down", "flat"]


class Trend(BaseModel):
    icon: TrendIcon = "flat"
    amount_text: str = "0%"


class MetricCard(BaseModel):
    """Display-ready card. Carries no knowledge of how it is rendered."""

    title: str
    summary_text: str
    sparkline: Dict[str, float] = Field(default_factory=dict)
    trend: Trend = Field(default_factory=Trend)
    trend_text: str = "Compared to last week"
    data: Optional[List[Dict[str, Any]]] = None


UNKNOWN_METRIC_CARD = MetricCard(title="Unknown Metric", summary_text="N/A")


class ComponentPayload(BaseModel):
    """Component cache entry: expensive ``data`` plus cheap UI ``options``.

    Either half may be missing, never both.
    """

    data: Optional[Any] = None
    options: Optional[Dict[str, Any]] = None
    cached_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _not_empty(self):
        if self.data is None and self.options is None:
            raise ValueError("component payload needs data or options")
        return self

    @property
    def has_data(self) -> bool:
        return self.data is not None


class CacheEntry(BaseModel):
    """Serialized form of one metric-cache record."""

    key: str
    payload: Dict[str, Any]
    expires_at: datetime
    jitter_offset: int = 0
