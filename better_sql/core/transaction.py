"""Transaction management.

A thin wrapper around an autocommit connection: autocommit is switched off
for the duration of the block, the work is committed on success and rolled
back on exception, and the connection's autocommit and isolation settings
are restored afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from better_sql.core.connection import ConnectionManager, resolve_adapter
from better_sql.core.enums import Isolation
from better_sql.core.exceptions import TransactionStateError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class BetterSqlTransaction:
    """Synchronous transaction context manager.

    Args:
        connection: Open DB-API connection in autocommit mode.
        isolation: Isolation level for this transaction only.
        adapter: Driver adapter; resolved from the connection when omitted.
    """

    def __init__(
        self,
        connection: Any,
        isolation: Isolation | None = None,
        adapter: Any = None,
    ) -> None:
        self._connection = connection
        self._isolation = isolation
        self._adapter = adapter if adapter is not None else resolve_adapter(connection)
        self._previous_isolation: Isolation | None = None
        self._state = _TxState.IDLE

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def state(self) -> str:
        return self._state.value

    def __enter__(self) -> BetterSqlTransaction:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        if not self._adapter.get_autocommit(self._connection):
            raise TransactionStateError("active", "begin")

        if self._isolation is not None:
            current = self._adapter.get_isolation(self._connection)
            if current != self._isolation:
                self._previous_isolation = current
                self._adapter.set_isolation(self._connection, self._isolation)

        self._adapter.set_autocommit(self._connection, False)
        self._state = _TxState.ACTIVE
        logger.debug("Transaction started (isolation=%s)", self._isolation)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                    logger.debug("Transaction rolled back after %s", exc_type.__name__)
                else:
                    self._connection.commit()
                    self._state = _TxState.COMMITTED
                    logger.debug("Transaction committed")
        finally:
            self._adapter.set_autocommit(self._connection, True)
            if self._previous_isolation is not None:
                self._adapter.set_isolation(self._connection, self._previous_isolation)
                self._previous_isolation = None

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "commit")
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def run(self, fn: Callable[[Any], T]) -> T:
        """Run ``fn(connection)`` inside this transaction and return its result."""
        with self:
            return fn(self._connection)


def run_in_transaction(
    manager: ConnectionManager,
    fn: Callable[[Any], T],
    isolation: Isolation | None = None,
) -> T:
    """Open a connection, run ``fn(connection)`` in a transaction, close it."""
    with manager.get_connection() as connection:
        transaction = BetterSqlTransaction(connection, isolation, manager.adapter)
        return transaction.run(fn)
