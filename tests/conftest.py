"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from typing import Any

import pytest

from better_sql.adapters.sqlite import SqliteAdapter
from better_sql.core.connection import ConnectionConfig
from better_sql.core.enums import Isolation
from better_sql.core.results import ResultSet
from better_sql.core.types import SqlArray


class FakeCursor:
    """DB-API cursor that replays results queued on its FakeConnection."""

    def __init__(self, connection: FakeConnection, name: str | None = None) -> None:
        self.connection = connection
        self.name = name
        self.description: list[tuple[Any, ...]] | None = None
        self.rowcount = -1
        self.lastrowid: int | None = None
        self.arraysize = 1
        self.fetch_sizes: list[int] = []
        self.closed = False
        self._rows: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self.connection.executed.append((sql, tuple(params)))
        columns, rows, rowcount = self.connection.next_result()
        self.description = [(c, None, None, None, None, None, None) for c in columns] or None
        self._rows = list(rows)
        self.rowcount = rowcount
        self.lastrowid = self.connection.lastrowid

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows.pop(0) if self._rows else None

    def fetchmany(self, size: int | None = None) -> list[tuple[Any, ...]]:
        count = self.arraysize if size is None else size
        self.fetch_sizes.append(count)
        rows, self._rows = self._rows[:count], self._rows[count:]
        return rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """Records executed SQL; results are queued with ``queue()``."""

    def __init__(self) -> None:
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.cursors: list[FakeCursor] = []
        self.autocommit = True
        self.isolation: Isolation | None = Isolation.READ_COMMITTED
        self.commits = 0
        self.rollbacks = 0
        self.lastrowid: int | None = None
        self._results: list[tuple[Sequence[str], Sequence[tuple[Any, ...]], int]] = []

    def queue(
        self,
        columns: Sequence[str] = (),
        rows: Sequence[tuple[Any, ...]] = (),
        rowcount: int = -1,
    ) -> None:
        self._results.append((columns, rows, rowcount))

    def next_result(self) -> tuple[Sequence[str], Sequence[tuple[Any, ...]], int]:
        if self._results:
            return self._results.pop(0)
        return (), (), 1

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class FakeAdapter:
    """StatementAdapter over FakeConnection that records every call it gets."""

    def __init__(self, paramstyle: str = "qmark", array_support: bool = False) -> None:
        self._paramstyle = paramstyle
        self._array_support = array_support
        self.timeouts: list[float | None] = []
        self.cancelled = 0
        self.calls: list[tuple[str, Any]] = []

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    @property
    def array_support(self) -> bool:
        return self._array_support

    def connect(self, config: ConnectionConfig) -> FakeConnection:
        return FakeConnection()

    def cursor(self, connection: FakeConnection, name: str | None = None) -> FakeCursor:
        cursor = FakeCursor(connection, name)
        connection.cursors.append(cursor)
        return cursor

    def execute(self, cursor: FakeCursor, sql: str, params: Sequence[Any]) -> None:
        cursor.execute(sql, params)

    def create_array(self, connection: Any, type_name: str, elements: Sequence[Any]) -> SqlArray:
        return SqlArray(type_name, elements)

    def adapt_parameter(self, value: Any) -> Any:
        if isinstance(value, SqlArray):
            return list(value.elements)
        return value

    def generated_keys_sql(self, sql: str) -> str:
        return f"{sql} RETURNING *" if self._array_support else sql

    def generated_keys(self, cursor: FakeCursor) -> ResultSet:
        if cursor.lastrowid is None:
            return ResultSet.from_rows(["GENERATED_KEY"], [])
        return ResultSet.from_rows(["GENERATED_KEY"], [(cursor.lastrowid,)])

    def apply_query_timeout(self, connection: Any, seconds: float | None) -> None:
        self.timeouts.append(seconds)

    def cancel(self, connection: Any) -> None:
        self.cancelled += 1

    def get_autocommit(self, connection: FakeConnection) -> bool:
        return connection.autocommit

    def set_autocommit(self, connection: FakeConnection, autocommit: bool) -> None:
        self.calls.append(("autocommit", autocommit))
        connection.autocommit = autocommit

    def get_isolation(self, connection: FakeConnection) -> Isolation | None:
        return connection.isolation

    def set_isolation(self, connection: FakeConnection, isolation: Isolation) -> None:
        self.calls.append(("isolation", isolation))
        connection.isolation = isolation


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Qmark adapter without native arrays."""
    return FakeAdapter()


@pytest.fixture
def array_adapter() -> FakeAdapter:
    """Format-style adapter with native arrays, shaped like PostgreSQL."""
    return FakeAdapter(paramstyle="format", array_support=True)


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def sqlite_connection(sqlite_config: ConnectionConfig) -> Iterator[sqlite3.Connection]:
    """Autocommit in-memory SQLite connection, closed after the test."""
    connection = SqliteAdapter().connect(sqlite_config)
    yield connection
    connection.close()
