from typing import Iterable, Optional


class CacheKeys:
    """Centralised cache key namespaces and joining rules"""

    SEPARATOR = ":"

    # Read-through metric card cache
    METRIC_NAMESPACE = "pulse_metric"

    # Two-part (data + options) component cache
    COMPONENT_NAMESPACE = "pulse_component"

    @classmethod
    def join(cls, parts: Iterable[Optional[object]]) -> str:
        """Join key parts, dropping empty ones (a component without context)."""
        return cls.SEPARATOR.join(str(p) for p in parts if p is not None and p != "")

    @classmethod
    def metric_key(
        cls,
        context: str,
        metric_id: str,
        period_bucket: int,
        filters_digest: str,
        namespace: str | None = None,
    ) -> str:
        return cls.join(
            [
                namespace or cls.METRIC_NAMESPACE,
                context,
                metric_id,
                period_bucket,
                filters_digest,
            ]
        )

    @classmethod
    def component_key(cls, component_id: str, context: str | None = None) -> str:
        return cls.join([cls.COMPONENT_NAMESPACE, component_id, context])
