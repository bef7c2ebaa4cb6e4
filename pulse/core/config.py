from shared.config import BaseServiceConfig


class Settings(BaseServiceConfig):
    # Metric card cache (read-through)
    metric_cache_enabled: bool = True
    metric_cache_duration_seconds: int = 86400
    cache_namespace: str = "pulse_metric"

    # Component cache (data + options payload)
    component_cache_duration_seconds: int = 86400
    component_options_ttl_seconds: int = 300  # options-only skeleton entries

    # Jitter ceiling as a fraction of the nominal cache duration
    cache_jitter_fraction: float = 0.25

    # Card / chart windows
    card_window_days: int = 14
    trend_window_days: int = 7
    chart_window_days: int = 14

    # Rollups
    rollup_period_types: list[str] = ["hour", "day"]
    backfill_pause_seconds: float = 0.1

    # Startup connection retries
    connect_retries: int = 5

    # Prometheus exposition port for long backfills; unset disables it
    metrics_port: int | None = None

    service_name: str = "pulse"


settings = Settings()
