"""Shared configuration base classes.

Provides the connection and logging settings every pulse entrypoint needs so
the individual `Settings` classes only declare what is specific to them.
"""

from pydantic_settings import BaseSettings


class BaseLoggingConfig(BaseSettings):
    """Common logging configuration."""

    app_log_level: str = "INFO"
    # Substring match against log record keys
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "api_key",
        "authorization",
        "cookie",
    ]
    app_environment: str = "production"


class BaseClickHouseConfig(BaseSettings):
    """Connection settings for the event / summary store."""

    clickhouse_host: str = "clickhouse"
    clickhouse_port: int = 9000
    clickhouse_db: str = "pulse"
    clickhouse_user: str = "admin"
    clickhouse_password: str = "admin"


class BaseRedisConfig(BaseSettings):
    """Connection settings for the cache backend."""

    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0


class BaseServiceConfig(BaseLoggingConfig, BaseClickHouseConfig, BaseRedisConfig):
    """Base configuration combining logging and store settings.

    Entrypoints inherit from this and add their own settings. The
    service_name should be overridden.
    """

    service_name: str = "unknown"  # Should be overridden


__all__ = [
    "BaseLoggingConfig",
    "BaseClickHouseConfig",
    "BaseRedisConfig",
    "BaseServiceConfig",
]
