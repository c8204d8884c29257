"""Database adapter protocol.

Every adapter module MUST implement this protocol. Statements, transactions
and the support facade only talk to drivers through it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from better_sql.core.connection import ConnectionConfig
from better_sql.core.enums import Isolation
from better_sql.core.results import ResultSet


@runtime_checkable
class StatementAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style: 'qmark' (?), 'format' (%s) or 'numeric' (:1)."""
        ...

    @property
    def array_support(self) -> bool:
        """True when the driver binds native array values."""
        ...

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a new connection in autocommit mode."""
        ...

    def cursor(self, connection: Any, name: str | None = None) -> Any:
        """Open a cursor, server-side when *name* is given and supported."""
        ...

    def execute(self, cursor: Any, sql: str, params: Sequence[Any]) -> None:
        """Execute SQL with positional parameters on *cursor*."""
        ...

    def create_array(self, connection: Any, type_name: str, elements: Sequence[Any]) -> Any:
        """Build a native array value."""
        ...

    def adapt_parameter(self, value: Any) -> Any:
        """Convert a bound value to what the driver accepts."""
        ...

    def generated_keys_sql(self, sql: str) -> str:
        """Rewrite SQL so the driver can report generated keys."""
        ...

    def generated_keys(self, cursor: Any) -> ResultSet:
        """Generated keys of the last statement executed on *cursor*."""
        ...

    def apply_query_timeout(self, connection: Any, seconds: float | None) -> None:
        """Limit statement run time; None clears the limit."""
        ...

    def cancel(self, connection: Any) -> None:
        """Abort the statement currently running on *connection*."""
        ...

    def get_autocommit(self, connection: Any) -> bool:
        ...

    def set_autocommit(self, connection: Any, autocommit: bool) -> None:
        ...

    def get_isolation(self, connection: Any) -> Isolation | None:
        ...

    def set_isolation(self, connection: Any, isolation: Isolation) -> None:
        ...
