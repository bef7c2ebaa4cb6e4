from __future__ import annotations

from typing import Optional

import redis

from pulse.core.config import settings
from pulse.core.errors import CacheBackendFailure
from pulse.infrastructure.base import CacheBackend


class RedisCacheBackend(CacheBackend):
    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls) -> "RedisCacheBackend":
        return cls(
            redis.Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                decode_responses=True,
            )
        )

    def read(self, key: str) -> Optional[str]:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise CacheBackendFailure(f"redis read failed for {key}") from exc

    def write(self, key: str, value: str, ttl: int) -> None:
        try:
            self._client.setex(key, max(int(ttl), 1), value)
        except redis.RedisError as exc:
            raise CacheBackendFailure(f"redis write failed for {key}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise CacheBackendFailure(f"redis delete failed for {key}") from exc

    def ping(self) -> None:
        try:
            self._client.ping()
        except redis.RedisError as exc:
            raise CacheBackendFailure("redis ping failed") from exc
