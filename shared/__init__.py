"""Shared utilities and components for the pulse packages."""

from .config import (
    BaseClickHouseConfig,
    BaseLoggingConfig,
    BaseRedisConfig,
    BaseServiceConfig,
)
from .constants import CacheKeys

__all__ = [
    "CacheKeys",
    "BaseServiceConfig",
    "BaseLoggingConfig",
    "BaseClickHouseConfig",
    "BaseRedisConfig",
]
