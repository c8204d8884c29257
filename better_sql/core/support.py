"""Query helpers with scoped statement handling.

Every helper prepares a statement for the configured capability (native
arrays or simulated IN clauses), lets a binding callback set its
parameters, executes it and closes it on every exit path. Driver errors
propagate unchanged; errors raised by result mappings are wrapped in
ResultMappingError.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, TypeVar

from better_sql.core.dispatch import create_statement
from better_sql.core.exceptions import BetterSqlError, ResultMappingError
from better_sql.core.options import BetterOptions
from better_sql.core.results import ResultRow
from better_sql.core.statement import StatementHandle
from better_sql.mapping.protocol import ResultMapping, StatementBinding

T = TypeVar("T")
K = TypeVar("K")


def _apply_mapping(mapping: ResultMapping[T], row: ResultRow) -> T:
    try:
        return mapping(row)
    except BetterSqlError:
        raise
    except Exception as e:
        raise ResultMappingError(f"result mapping failed: {e}") from e


class BetterSqlSupport:
    """Query, update and insert helpers over DB-API connections.

    Args:
        options: Capability options; IN clauses are simulated unless
            Option.ARRAY_SUPPORT is enabled.
        adapter: Driver adapter; resolved per connection when omitted.
    """

    def __init__(self, options: BetterOptions | None = None, adapter: Any = None) -> None:
        self._options = options if options is not None else BetterOptions.defaults()
        self._adapter = adapter

    @property
    def options(self) -> BetterOptions:
        return self._options

    def prepare(
        self,
        connection: Any,
        sql: str,
        return_generated_keys: bool = False,
    ) -> StatementHandle:
        """Prepare a statement the way every helper does. Close it yourself."""
        return create_statement(
            connection,
            sql,
            return_generated_keys=return_generated_keys,
            simulated_in=not self._options.array_support,
            adapter=self._adapter,
        )

    def query(
        self,
        connection: Any,
        sql: str,
        mapping: ResultMapping[T],
        binding: StatementBinding | None = None,
    ) -> T | None:
        """Map the first row, or return None when there is none."""
        with self.prepare(connection, sql) as statement:
            if binding is not None:
                binding(statement)
            with statement.execute_query() as result_set:
                row = result_set.fetch_one()
                if row is None:
                    return None
                return _apply_mapping(mapping, row)

    def query_list(
        self,
        connection: Any,
        sql: str,
        mapping: ResultMapping[T],
        binding: StatementBinding | None = None,
    ) -> list[T]:
        """Map every row."""
        with self.prepare(connection, sql) as statement:
            if binding is not None:
                binding(statement)
            with statement.execute_query() as result_set:
                return [_apply_mapping(mapping, row) for row in result_set]

    def query_map(
        self,
        connection: Any,
        sql: str,
        mapping: ResultMapping[T],
        key_mapping: ResultMapping[K],
        binding: StatementBinding | None = None,
    ) -> dict[K, T]:
        """Map every row into a dict keyed by *key_mapping*; later rows win."""
        with self.prepare(connection, sql) as statement:
            if binding is not None:
                binding(statement)
            with statement.execute_query() as result_set:
                return {
                    _apply_mapping(key_mapping, row): _apply_mapping(mapping, row)
                    for row in result_set
                }

    def update(self, connection: Any, sql: str, binding: StatementBinding | None = None) -> int:
        """Execute an update and return the affected row count."""
        with self.prepare(connection, sql) as statement:
            if binding is not None:
                binding(statement)
            return statement.execute_update()

    def insert(self, connection: Any, sql: str, binding: StatementBinding | None = None) -> Any:
        """Execute an insert and return the first generated key, if any."""
        with self.prepare(connection, sql, return_generated_keys=True) as statement:
            if binding is not None:
                binding(statement)
            statement.execute_update()
            with statement.get_generated_keys() as keys:
                row = keys.fetch_one()
                return None if row is None else row.get_object(1)

    def insert_mapped(
        self,
        connection: Any,
        sql: str,
        key_mapping: ResultMapping[K],
        binding: StatementBinding | None = None,
    ) -> K | None:
        """Execute an insert and map the generated key row."""
        with self.prepare(connection, sql, return_generated_keys=True) as statement:
            if binding is not None:
                binding(statement)
            statement.execute_update()
            with statement.get_generated_keys() as keys:
                row = keys.fetch_one()
                return None if row is None else _apply_mapping(key_mapping, row)

    def builder(self, sql: str) -> QueryBuilder:
        return QueryBuilder(self, sql)


@dataclass(frozen=True)
class QueryBuilder:
    """Fluent, immutable front end to BetterSqlSupport.

    Each setter returns a new builder::

        support.builder("SELECT * FROM t WHERE id = :id")
            .bind(lambda ps: ps.set_long("id", 1))
            .map_result(lambda row: row.get_str("name"))
            .execute_query(connection)
    """

    support: BetterSqlSupport
    sql: str
    binding: StatementBinding | None = None
    result_mapping: ResultMapping[Any] | None = None
    key_mapping: ResultMapping[Any] | None = None

    def bind(self, binding: StatementBinding) -> QueryBuilder:
        return dataclasses.replace(self, binding=binding)

    def map_result(self, mapping: ResultMapping[Any]) -> QueryBuilder:
        return dataclasses.replace(self, result_mapping=mapping)

    def map_key(self, mapping: ResultMapping[Any]) -> QueryBuilder:
        return dataclasses.replace(self, key_mapping=mapping)

    def _require_result_mapping(self, operation: str) -> ResultMapping[Any]:
        if self.result_mapping is None:
            raise ValueError(f"{operation} requires map_result()")
        return self.result_mapping

    def execute_query(self, connection: Any) -> Any:
        mapping = self._require_result_mapping("execute_query")
        return self.support.query(connection, self.sql, mapping, self.binding)

    def execute_query_list(self, connection: Any) -> list[Any]:
        mapping = self._require_result_mapping("execute_query_list")
        return self.support.query_list(connection, self.sql, mapping, self.binding)

    def execute_query_mapped(self, connection: Any) -> dict[Any, Any]:
        mapping = self._require_result_mapping("execute_query_mapped")
        if self.key_mapping is None:
            raise ValueError("execute_query_mapped requires map_key()")
        return self.support.query_map(connection, self.sql, mapping, self.key_mapping, self.binding)

    def execute_update(self, connection: Any) -> int:
        return self.support.update(connection, self.sql, self.binding)

    def execute_insert(self, connection: Any) -> Any:
        """Insert; the generated key row goes through map_key() when set."""
        if self.key_mapping is not None:
            return self.support.insert_mapped(connection, self.sql, self.key_mapping, self.binding)
        return self.support.insert(connection, self.sql, self.binding)
