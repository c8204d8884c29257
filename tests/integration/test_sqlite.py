"""Integration test for SQLite full workflow.

Covers: connection management, entity mapping, simulated IN clauses,
transactions and batches end-to-end against a real SQLite database file.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from better_sql.core.connection import ConnectionConfig, ConnectionManager
from better_sql.core.delayed import DelayedBindingProxy
from better_sql.core.dispatch import create_statement
from better_sql.core.support import BetterSqlSupport
from better_sql.core.transaction import BetterSqlTransaction, run_in_transaction
from better_sql.mapping.table import column, key, transient
from better_sql.repository.mapper import BetterSqlMapper

pytestmark = pytest.mark.integration

# --- Test models ---


@dataclass
class Customer:
    id: int | None = field(default=None, metadata=key())
    name: str = ""
    email: str = field(default="", metadata=column("email_address"))
    cached_rank: int | None = field(default=None, metadata=transient())


@dataclass
class PurchaseOrder:
    id: int | None = field(default=None, metadata=key())
    user_id: int = 0
    amount: float = 0.0


# --- Fixtures ---


@pytest.fixture
def manager(tmp_path: Path) -> ConnectionManager:
    config = ConnectionConfig(driver="sqlite", database=str(tmp_path / "shop.db"))
    manager = ConnectionManager(config)
    with manager.get_connection() as conn:
        conn.execute(
            "CREATE TABLE customer (id INTEGER PRIMARY KEY, name TEXT NOT NULL, "
            "email_address TEXT NOT NULL)"
        )
        conn.execute(
            "CREATE TABLE purchase_order (id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL, "
            "amount REAL NOT NULL)"
        )
    return manager


@pytest.fixture
def conn(manager: ConnectionManager) -> Iterator[Any]:
    with manager.get_connection() as connection:
        yield connection


@pytest.fixture
def mapper() -> BetterSqlMapper:
    return BetterSqlMapper()


@pytest.fixture
def customers(conn: Any, mapper: BetterSqlMapper) -> list[Customer]:
    return [
        mapper.insert(conn, Customer(name=name, email=f"{name.lower()}@example.com"))
        for name in ("Alice", "Bob", "Carol", "Dave")
    ]


# --- Tests ---


class TestSqliteWorkflow:
    def test_crud(self, conn: Any, mapper: BetterSqlMapper, customers: list[Customer]) -> None:
        alice = customers[0]
        assert alice.id == 1
        assert mapper.find(conn, 1, Customer) == Customer(1, "Alice", "alice@example.com")

        alice.email = "alice@example.org"
        mapper.update(conn, alice)
        found = mapper.find(conn, 1, Customer)
        assert found is not None
        assert found.email == "alice@example.org"

        mapper.delete(conn, alice)
        assert mapper.find(conn, 1, Customer) is None

    def test_transient_field_is_not_stored(
        self, conn: Any, mapper: BetterSqlMapper, customers: list[Customer]
    ) -> None:
        ranked = Customer(name="Eve", email="eve@example.com", cached_rank=7)
        inserted = mapper.insert(conn, ranked)
        assert inserted.cached_rank == 7
        found = mapper.find(conn, inserted.id, Customer)
        assert found is not None
        assert found.cached_rank is None

    def test_in_clause(
        self, conn: Any, mapper: BetterSqlMapper, customers: list[Customer]
    ) -> None:
        found = mapper.find_all(conn, [2, 4, 9], Customer)
        assert sorted(u.name for u in found) == ["Bob", "Dave"]

        names = BetterSqlSupport().query_list(
            conn,
            "SELECT name FROM customer WHERE name <> :skip AND id IN (:ids)",
            lambda row: row.get_str("name"),
            lambda ps: (ps.set_string("skip", "Bob"), ps.set_array("ids", [1, 2, 3])),
        )
        assert sorted(names) == ["Alice", "Carol"]

    def test_select_builder(
        self, conn: Any, mapper: BetterSqlMapper, customers: list[Customer]
    ) -> None:
        for customer in customers[:2]:
            for amount in (10.0, 2.5):
                mapper.insert(conn, PurchaseOrder(user_id=customer.id, amount=amount))

        sql = "SELECT * FROM purchase_order WHERE user_id = :user_id ORDER BY id"
        orders = (
            mapper.select(sql, PurchaseOrder)
            .bind(lambda ps: ps.set_long("user_id", 2))
            .list(conn)
        )
        assert [o.amount for o in orders] == [10.0, 2.5]
        assert {o.id for o in orders} == {3, 4}

    def test_transaction_rollback(
        self, conn: Any, mapper: BetterSqlMapper, customers: list[Customer]
    ) -> None:
        with pytest.raises(RuntimeError), BetterSqlTransaction(conn):
            mapper.insert(conn, PurchaseOrder(user_id=1, amount=99.0))
            mapper.delete_by_key(conn, 1, Customer)
            raise RuntimeError("payment declined")

        assert mapper.find(conn, 1, Customer) is not None
        assert mapper.select("SELECT * FROM purchase_order", PurchaseOrder).list(conn) == []

    def test_run_in_transaction(self, manager: ConnectionManager, mapper: BetterSqlMapper) -> None:
        def place_order(connection: Any) -> PurchaseOrder:
            frank = Customer(name="Frank", email="frank@example.com")
            customer = mapper.insert(connection, frank)
            return mapper.insert(connection, PurchaseOrder(user_id=customer.id, amount=42.0))

        order = run_in_transaction(manager, place_order)
        assert order.id == 1

        with manager.get_connection() as other:
            assert mapper.find(other, 1, PurchaseOrder) == PurchaseOrder(1, 1, 42.0)

    def test_batch_through_proxy(self, conn: Any, customers: list[Customer]) -> None:
        sql = "UPDATE customer SET name = :name WHERE id IN (:ids)"
        with create_statement(conn, sql, simulated_in=True) as ps:
            assert isinstance(ps, DelayedBindingProxy)
            ps.set_string("name", "pair one")
            ps.set_array("ids", [1, 2])
            ps.add_batch()
            ps.set_string("name", "pair two")
            ps.set_array("ids", [3, 4])
            ps.add_batch()
            assert ps.execute_batch() == [2, 2]

        names = BetterSqlSupport().query_list(
            conn, "SELECT name FROM customer ORDER BY id", lambda row: row.get_str(1)
        )
        assert names == ["pair one", "pair one", "pair two", "pair two"]
