"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from better_sql.core.connection import ConnectionConfig
from better_sql.core.enums import Isolation
from better_sql.core.exceptions import AdapterError
from better_sql.core.results import ResultSet
from better_sql.core.types import SqlArray


class MysqlAdapter:
    """MySQL adapter using mysql-connector-python. No native arrays."""

    @property
    def paramstyle(self) -> str:
        return "format"

    @property
    def array_support(self) -> bool:
        return False

    def connect(self, config: ConnectionConfig) -> Any:
        import mysql.connector

        return mysql.connector.connect(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            autocommit=True,
            **config.extra,
        )

    def cursor(self, connection: Any, name: str | None = None) -> Any:
        return connection.cursor()

    def execute(self, cursor: Any, sql: str, params: Sequence[Any]) -> None:
        cursor.execute(sql, tuple(params) or None)

    def create_array(self, connection: Any, type_name: str, elements: Sequence[Any]) -> Any:
        raise AdapterError("MySQL has no native array type")

    def adapt_parameter(self, value: Any) -> Any:
        if isinstance(value, SqlArray):
            raise AdapterError("MySQL has no native array type")
        return value

    def generated_keys_sql(self, sql: str) -> str:
        return sql

    def generated_keys(self, cursor: Any) -> ResultSet:
        if not cursor.lastrowid:
            return ResultSet.from_rows(["GENERATED_KEY"], [])
        return ResultSet.from_rows(["GENERATED_KEY"], [(cursor.lastrowid,)])

    def apply_query_timeout(self, connection: Any, seconds: float | None) -> None:
        # only applies to SELECT statements
        milliseconds = int(seconds * 1000) if seconds else 0
        cursor = connection.cursor()
        try:
            cursor.execute(f"SET SESSION MAX_EXECUTION_TIME = {milliseconds}")
        finally:
            cursor.close()

    def cancel(self, connection: Any) -> None:
        # the blocked connection cannot send a KILL QUERY for itself
        raise AdapterError("MySQL statements cannot be cancelled from their own connection")

    def get_autocommit(self, connection: Any) -> bool:
        return bool(connection.autocommit)

    def set_autocommit(self, connection: Any, autocommit: bool) -> None:
        connection.autocommit = autocommit

    def get_isolation(self, connection: Any) -> Isolation | None:
        cursor = connection.cursor()
        try:
            cursor.execute("SELECT @@transaction_isolation")
            (level,) = cursor.fetchone()
        finally:
            cursor.close()
        if isinstance(level, (bytes, bytearray)):
            level = level.decode("ascii")
        return Isolation[level.replace("-", "_").upper()]

    def set_isolation(self, connection: Any, isolation: Isolation) -> None:
        cursor = connection.cursor()
        try:
            cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {isolation.value}")
        finally:
            cursor.close()
