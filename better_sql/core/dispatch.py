"""Statement creation: native arrays or simulated IN clauses."""

from __future__ import annotations

import logging
from typing import Any

from better_sql.core.connection import resolve_adapter
from better_sql.core.delayed import DelayedBindingProxy
from better_sql.core.params import detect_in_clause
from better_sql.core.statement import BetterPreparedStatement, StatementHandle

logger = logging.getLogger(__name__)


def create_statement(
    connection: Any,
    sql: str,
    return_generated_keys: bool = False,
    simulated_in: bool = False,
    adapter: Any = None,
) -> StatementHandle:
    """Prepare *sql* on *connection*.

    Args:
        connection: Open DB-API connection.
        sql: SQL with :named parameters or `?` placeholders.
        return_generated_keys: Make generated keys available after an insert.
        simulated_in: The database has no array parameters. Statements that
            look like they end in an IN clause get a DelayedBindingProxy,
            which expands array placeholders at execution.
        adapter: Driver adapter; resolved from the connection when omitted.

    Returns:
        A DelayedBindingProxy or a BetterPreparedStatement. Either should be
        used as a context manager.
    """
    if adapter is None:
        adapter = resolve_adapter(connection)
    if simulated_in and detect_in_clause(sql):
        logger.debug("Deferring preparation for IN clause: %s", sql)
        return DelayedBindingProxy(connection, sql, adapter, return_generated_keys)
    return BetterPreparedStatement.prepare(connection, sql, adapter, return_generated_keys)
