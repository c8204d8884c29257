"""PostgreSQL adapter using psycopg (v3+). Supports native arrays."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from better_sql.core.connection import ConnectionConfig
from better_sql.core.enums import Isolation
from better_sql.core.results import ResultSet
from better_sql.core.types import SqlArray


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


class PostgresqlAdapter:
    """PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "format"

    @property
    def array_support(self) -> bool:
        return True

    def connect(self, config: ConnectionConfig) -> Any:
        import psycopg

        return psycopg.connect(_build_conninfo(config), autocommit=True, **config.extra)

    def cursor(self, connection: Any, name: str | None = None) -> Any:
        if name:
            return connection.cursor(name=name)
        return connection.cursor()

    def execute(self, cursor: Any, sql: str, params: Sequence[Any]) -> None:
        cursor.execute(sql, tuple(params) or None)

    def create_array(self, connection: Any, type_name: str, elements: Sequence[Any]) -> SqlArray:
        return SqlArray(type_name, elements)

    def adapt_parameter(self, value: Any) -> Any:
        if isinstance(value, SqlArray):
            # psycopg adapts lists to arrays of the element type
            return list(value.elements)
        return value

    def generated_keys_sql(self, sql: str) -> str:
        return f"{sql.rstrip().rstrip(';')} RETURNING *"

    def generated_keys(self, cursor: Any) -> ResultSet:
        if cursor.description is None:
            return ResultSet.from_rows([], [])
        return ResultSet(cursor)

    def apply_query_timeout(self, connection: Any, seconds: float | None) -> None:
        from psycopg import pq

        if connection.info.transaction_status == pq.TransactionStatus.INERROR:
            # SET is refused until rollback, which resets the setting anyway
            return
        milliseconds = int(seconds * 1000) if seconds else 0
        connection.execute(f"SET statement_timeout = {milliseconds}")

    def cancel(self, connection: Any) -> None:
        connection.cancel()

    def get_autocommit(self, connection: Any) -> bool:
        return bool(connection.autocommit)

    def set_autocommit(self, connection: Any, autocommit: bool) -> None:
        connection.autocommit = autocommit

    def get_isolation(self, connection: Any) -> Isolation | None:
        level = connection.isolation_level
        if level is None:
            return None
        return Isolation[level.name]

    def set_isolation(self, connection: Any, isolation: Isolation) -> None:
        import psycopg

        connection.isolation_level = psycopg.IsolationLevel[isolation.name]
