"""Unit tests for EntityMapper and BetterSqlMapper."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, Field

from better_sql.core.enums import SqlType
from better_sql.core.exceptions import (
    CompositeKeyError,
    NullPrimaryKeyError,
    RowCountError,
)
from better_sql.core.results import ResultRow
from better_sql.core.statement import BetterPreparedStatement
from better_sql.mapping.model import EntityMapper
from better_sql.mapping.table import TableRegistry, inspect_table, key
from better_sql.repository.mapper import BetterSqlMapper


@dataclass
class Widget:
    id: int | None = field(default=None, metadata=key())
    name: str = ""
    weight: float | None = None
    active: bool = False


class Gadget(BaseModel):
    __table__ = "gadgets"

    id: int | None = Field(default=None, json_schema_extra=key())
    label: str
    price: float = 0.0


@dataclass
class Membership:
    group_id: int | None = field(default=None, metadata=key())
    user_id: int | None = field(default=None, metadata=key())
    role: str = "member"


@pytest.fixture
def conn(sqlite_connection: sqlite3.Connection) -> sqlite3.Connection:
    sqlite_connection.execute(
        "CREATE TABLE widget (id INTEGER PRIMARY KEY, name TEXT NOT NULL, weight REAL, "
        "active BOOLEAN NOT NULL)"
    )
    sqlite_connection.execute(
        "CREATE TABLE gadgets (id INTEGER PRIMARY KEY, label TEXT NOT NULL, price REAL NOT NULL)"
    )
    sqlite_connection.execute(
        "CREATE TABLE membership (group_id INTEGER NOT NULL, user_id INTEGER NOT NULL, "
        "role TEXT NOT NULL, PRIMARY KEY (group_id, user_id))"
    )
    return sqlite_connection


@pytest.fixture
def mapper() -> BetterSqlMapper:
    return BetterSqlMapper()


class TestEntityMapper:
    def test_from_row(self) -> None:
        entity_mapper = EntityMapper(Widget, inspect_table(Widget))
        row = ResultRow(["ID", "name", "weight", "active"], [1, "bolt", None, None])
        assert entity_mapper.from_row(row) == Widget(1, "bolt", None, False)

    def test_from_row_pydantic(self) -> None:
        entity_mapper = EntityMapper(Gadget, inspect_table(Gadget))
        row = ResultRow(["id", "label", "price"], [2, "lamp", 9.5])
        assert entity_mapper.from_row(row) == Gadget(id=2, label="lamp", price=9.5)

    def test_bind(self, fake_connection, fake_adapter) -> None:
        table = inspect_table(Widget)
        entity_mapper = EntityMapper(Widget, table)
        ps = BetterPreparedStatement.prepare(fake_connection, "SELECT ?, ?, ?, ?", fake_adapter)
        next_position = entity_mapper.bind(ps, Widget(None, "bolt", None, True), table.columns, 2)
        assert next_position == 5
        assert [p.sql_type if p else None for p in ps.get_parameter_metadata()] == [
            None,
            SqlType.VARCHAR,
            SqlType.DOUBLE,
            SqlType.BOOLEAN,
        ]

    def test_key_values(self) -> None:
        entity_mapper = EntityMapper(Membership, inspect_table(Membership))
        assert entity_mapper.key_values(Membership()) == []
        assert [v for _, v in entity_mapper.key_values(Membership(1, 2))] == [1, 2]
        with pytest.raises(NullPrimaryKeyError):
            entity_mapper.key_values(Membership(1, None))

    def test_with_values(self) -> None:
        widget_mapper = EntityMapper(Widget, inspect_table(Widget))
        assert widget_mapper.with_values(Widget(name="a"), {"id": 3}) == Widget(3, "a")
        gadget_mapper = EntityMapper(Gadget, inspect_table(Gadget))
        assert gadget_mapper.with_values(Gadget(label="b"), {"id": 4}).id == 4


class TestInsertAndFind:
    def test_insert_generates_key(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        original = Widget(name="bolt", weight=1.5)
        inserted = mapper.insert(conn, original)
        assert inserted.id == 1
        assert original.id is None
        assert mapper.find(conn, 1, Widget) == Widget(1, "bolt", 1.5, False)

    def test_insert_pydantic(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        inserted = mapper.insert(conn, Gadget(label="lamp", price=9.5))
        assert inserted.id == 1
        assert mapper.find(conn, 1, Gadget) == Gadget(id=1, label="lamp", price=9.5)

    def test_insert_with_key(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        widget = Widget(10, "nut")
        assert mapper.insert(conn, widget) is widget
        assert mapper.find(conn, 10, Widget) == widget

    def test_find_missing(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        assert mapper.find(conn, 99, Widget) is None

    def test_find_all(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        for name in ("a", "b", "c"):
            mapper.insert(conn, Widget(name=name))
        found = mapper.find_all(conn, [1, 3, 42], Widget)
        assert sorted(w.name for w in found) == ["a", "c"]

    def test_find_all_without_keys(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        assert mapper.find_all(conn, [], Widget) == []

    def test_composite_key_find_is_refused(
        self, conn: sqlite3.Connection, mapper: BetterSqlMapper
    ) -> None:
        with pytest.raises(CompositeKeyError, match="select builder"):
            mapper.find(conn, 1, Membership)

    def test_composite_insert(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        mapper.insert(conn, Membership(1, 2, "owner"))
        found = (
            mapper.select(
                "SELECT * FROM membership WHERE group_id = :g AND user_id = :u", Membership
            )
            .bind(lambda ps: (ps.set_long("g", 1), ps.set_long("u", 2)))
            .one(conn)
        )
        assert found == Membership(1, 2, "owner")


class TestUpdateAndDelete:
    def test_update(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        widget = mapper.insert(conn, Widget(name="bolt"))
        widget.weight = 2.0
        widget.active = True
        mapper.update(conn, widget)
        assert mapper.find(conn, widget.id, Widget) == widget

    def test_update_missing_row(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        with pytest.raises(RowCountError, match="0 rows updated") as excinfo:
            mapper.update(conn, Widget(5, "ghost"))
        assert excinfo.value.count == 0
        assert "id: 5" in str(excinfo.value)

    def test_update_without_key(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        with pytest.raises(NullPrimaryKeyError):
            mapper.update(conn, Widget(name="bolt"))

    def test_update_composite(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        mapper.insert(conn, Membership(1, 2))
        mapper.update(conn, Membership(1, 2, "admin"))
        roles = mapper.select("SELECT * FROM membership", Membership).list(conn)
        assert [m.role for m in roles] == ["admin"]

    def test_delete(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        widget = mapper.insert(conn, Widget(name="bolt"))
        mapper.delete(conn, widget)
        assert mapper.find(conn, widget.id, Widget) is None
        with pytest.raises(RowCountError, match="0 rows deleted"):
            mapper.delete(conn, widget)

    def test_delete_without_key(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        with pytest.raises(NullPrimaryKeyError):
            mapper.delete(conn, Widget(name="bolt"))

    def test_delete_by_key(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        mapper.insert(conn, Widget(name="bolt"))
        assert mapper.delete_by_key(conn, 1, Widget) == 1
        assert mapper.delete_by_key(conn, 1, Widget) == 0

    def test_delete_all(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        for name in ("a", "b", "c"):
            mapper.insert(conn, Widget(name=name))
        assert mapper.delete_all(conn, [1, 2, 7], Widget) == 2
        assert mapper.delete_all(conn, [], Widget) == 0
        assert [w.name for w in mapper.select("SELECT * FROM widget", Widget).list(conn)] == ["c"]

    def test_delete_all_composite(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        with pytest.raises(CompositeKeyError):
            mapper.delete_all(conn, [1], Membership)


class TestSelectBuilder:
    def test_map(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        for name in ("a", "b"):
            mapper.insert(conn, Widget(name=name))
        by_name = mapper.select("SELECT * FROM widget", Widget).map(
            conn, lambda row: row.get_str("name")
        )
        assert by_name == {"a": Widget(1, "a"), "b": Widget(2, "b")}

    def test_one_without_rows(self, conn: sqlite3.Connection, mapper: BetterSqlMapper) -> None:
        assert mapper.select("SELECT * FROM widget", Widget).one(conn) is None

    def test_shared_registry(self) -> None:
        registry = TableRegistry()
        first = BetterSqlMapper(registry=registry)
        second = BetterSqlMapper(registry=registry)
        assert first.entity_mapper(Widget).table is second.entity_mapper(Widget).table

    def test_mapper_follows_registered_metadata(self) -> None:
        mapper = BetterSqlMapper()
        before = mapper.entity_mapper(Widget)
        assert mapper.entity_mapper(Widget) is before
        mapper.registry.register(Widget)
        assert mapper.entity_mapper(Widget) is not before
