"""ClickHouse client wrapper."""

from __future__ import annotations

import threading
from typing import Any

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseError

from pulse.core.config import settings
from pulse.core.errors import DataUnavailable
from pulse.infrastructure.clickhouse.ddl import ALL_DDLS

# Network failures surface from the driver as plain socket / EOF errors.
DRIVER_ERRORS = (ClickHouseError, OSError, EOFError)


class ClickHouseClient:
    def __init__(self, client: Client | None = None, ensure_tables: bool = True):
        self.client = client or Client(
            host=settings.clickhouse_host,
            port=settings.clickhouse_port,
            user=settings.clickhouse_user,
            password=settings.clickhouse_password,
            database=settings.clickhouse_db,
        )
        # clickhouse-driver raises PartiallyConsumedQueryError when two
        # queries overlap on one connection; serialize all access.
        self._lock = threading.RLock()
        if ensure_tables:
            self._ensure_tables()

    def _ensure_tables(self) -> None:
        for ddl in ALL_DDLS:
            self.execute(ddl)

    def execute(self, query: str, params: Any = None) -> list:
        with self._lock:
            try:
                if params is None:
                    return self.client.execute(query)
                return self.client.execute(query, params)
            except DRIVER_ERRORS as exc:
                raise DataUnavailable(f"clickhouse query failed: {exc}") from exc

    def insert_rows(self, table: str, rows: list[dict]) -> None:
        """Insert ``rows`` as one block; ClickHouse applies a block atomically."""
        if not rows:
            return
        # Derive stable column order from first row; ClickHouse expects
        # positional tuples
        columns = list(rows[0].keys())
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES"
        data = [tuple(r.get(col) for col in columns) for r in rows]
        self.execute(query, data)

    def ping(self) -> None:
        self.execute("SELECT 1")

    def close(self) -> None:
        with self._lock:
            self.client.disconnect()
