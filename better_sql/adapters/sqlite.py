"""SQLite adapter (sqlite3 stdlib)."""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Sequence
from typing import Any

from better_sql.core.connection import ConnectionConfig
from better_sql.core.enums import Isolation
from better_sql.core.exceptions import AdapterError
from better_sql.core.results import ResultSet
from better_sql.core.types import SqlArray

# progress handler granularity, in SQLite VM instructions
_PROGRESS_STEPS = 1000


class SqliteAdapter:
    """SQLite adapter using stdlib sqlite3. No native arrays."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    @property
    def array_support(self) -> bool:
        return False

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        """Open a connection with autocommit (isolation_level=None)."""
        conn = sqlite3.connect(config.database, **config.extra)
        conn.isolation_level = None
        return conn

    def cursor(self, connection: sqlite3.Connection, name: str | None = None) -> sqlite3.Cursor:
        return connection.cursor()

    def execute(self, cursor: sqlite3.Cursor, sql: str, params: Sequence[Any]) -> None:
        cursor.execute(sql, tuple(params))

    def create_array(
        self, connection: sqlite3.Connection, type_name: str, elements: Sequence[Any]
    ) -> Any:
        raise AdapterError("SQLite has no native array type")

    def adapt_parameter(self, value: Any) -> Any:
        if isinstance(value, SqlArray):
            raise AdapterError("SQLite has no native array type")
        return value

    def generated_keys_sql(self, sql: str) -> str:
        return sql

    def generated_keys(self, cursor: sqlite3.Cursor) -> ResultSet:
        if cursor.lastrowid is None:
            return ResultSet.from_rows(["GENERATED_KEY"], [])
        return ResultSet.from_rows(["GENERATED_KEY"], [(cursor.lastrowid,)])

    def apply_query_timeout(self, connection: sqlite3.Connection, seconds: float | None) -> None:
        """Interrupt statements running past the deadline via a progress handler."""
        if not seconds:
            connection.set_progress_handler(None, 0)
            return
        deadline = time.monotonic() + seconds
        connection.set_progress_handler(
            lambda: int(time.monotonic() > deadline), _PROGRESS_STEPS
        )

    def cancel(self, connection: sqlite3.Connection) -> None:
        connection.interrupt()

    def get_autocommit(self, connection: sqlite3.Connection) -> bool:
        return connection.isolation_level is None

    def set_autocommit(self, connection: sqlite3.Connection, autocommit: bool) -> None:
        connection.isolation_level = None if autocommit else "DEFERRED"

    def get_isolation(self, connection: sqlite3.Connection) -> Isolation | None:
        (read_uncommitted,) = connection.execute("PRAGMA read_uncommitted").fetchone()
        return Isolation.READ_UNCOMMITTED if read_uncommitted else Isolation.SERIALIZABLE

    def set_isolation(self, connection: sqlite3.Connection, isolation: Isolation) -> None:
        # SQLite is serializable; only shared-cache dirty reads can be toggled
        value = 1 if isolation is Isolation.READ_UNCOMMITTED else 0
        connection.execute(f"PRAGMA read_uncommitted = {value}")
