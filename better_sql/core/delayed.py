"""Deferred binding for IN clauses on databases without array parameters.

The proxy records every binding until the first execution. It then expands
each array placeholder into one `?` per element, prepares the real
statement against the expanded SQL and replays the bindings at their
shifted positions. The real statement's placeholder layout is fixed from
then on: arrays may be rebound only with the same number of elements.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from better_sql.core.enums import SqlType
from better_sql.core.exceptions import (
    ArrayReexpansionError,
    InvalidParameterIndexError,
    NotYetPreparedError,
    ParameterBindingMismatchError,
    SimulatedArrayUnsupportedError,
    StatementClosedError,
    UnmappableArrayTypeError,
)
from better_sql.core.options import StatementConfig
from better_sql.core.params import parse_named_parameters, split_placeholders
from better_sql.core.results import ResultSet
from better_sql.core.statement import BoundParameter, PreparedStatement, StatementHandle

logger = logging.getLogger(__name__)


class ProxyState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    PREPARED = "prepared"
    CLOSED = "closed"


@dataclass(frozen=True)
class ScalarBinding:
    """One value for one placeholder."""

    index: int
    value: Any
    sql_type: SqlType

    @property
    def size(self) -> int:
        return 1

    def apply(self, statement: PreparedStatement, position: int) -> None:
        statement.bind_parameter(position, self.value, self.sql_type)


@dataclass(frozen=True)
class ArrayBinding:
    """Elements for one placeholder, bound at consecutive positions."""

    index: int
    elements: tuple[Any, ...]

    @property
    def size(self) -> int:
        return len(self.elements)

    def apply(self, statement: PreparedStatement, position: int) -> None:
        for offset, element in enumerate(self.elements):
            statement.set_object(position + offset, element)


Binding = ScalarBinding | ArrayBinding


def expand_placeholders(sql: str, bindings: Mapping[int, Binding]) -> tuple[str, dict[int, int]]:
    """Expand the `?` of each array binding to one `?` per element.

    Returns:
        The expanded SQL and a map of logical position to the first real
        position it occupies.

    Raises:
        ParameterBindingMismatchError: Unless the bound positions are
            exactly 1..n for a template with n placeholders.
    """
    parts: list[str] = []
    positions: dict[int, int] = {}
    q_index = 0
    real = 0
    for is_placeholder, text in split_placeholders(sql):
        if not is_placeholder:
            parts.append(text)
            continue
        q_index += 1
        binding = bindings.get(q_index)
        size = binding.size if isinstance(binding, ArrayBinding) else 1
        positions[q_index] = real + 1
        real += size
        parts.append(", ".join(["?"] * size))
    if sorted(bindings) != list(range(1, q_index + 1)):
        raise ParameterBindingMismatchError(q_index, sorted(bindings))
    expanded = "".join(parts)
    logger.debug("Expanded %d placeholder(s) to %d: %s", q_index, real, expanded)
    return expanded, positions


class DelayedBindingProxy(StatementHandle):
    """Statement that prepares itself on first execution.

    Before that, setters only record bindings and configuration; metadata
    and result accessors raise NotYetPreparedError. The connection reference
    is dropped as soon as the real statement exists.

    Args:
        connection: Open DB-API connection. The caller owns it.
        sql: SQL with :named parameters or `?` placeholders.
        adapter: Adapter of the connection's driver.
        return_generated_keys: Passed on to the real statement.
    """

    def __init__(
        self,
        connection: Any,
        sql: str,
        adapter: Any,
        return_generated_keys: bool = False,
    ) -> None:
        self._named = parse_named_parameters(sql)
        self._sql = self._named.processed_sql if self._named is not None else sql
        self._connection = connection
        self._adapter = adapter
        self._return_generated_keys = return_generated_keys
        self._bindings: dict[int, Binding] = {}
        self._pending_batches: list[dict[int, Binding]] = []
        self._config = StatementConfig()
        self._statement: PreparedStatement | None = None
        self._real_positions: dict[int, int] = {}
        self._sizes: dict[int, int] = {}
        self._state = ProxyState.UNBOUND

    @property
    def state(self) -> ProxyState:
        return self._state

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def closed(self) -> bool:
        if self._state is ProxyState.CLOSED:
            return True
        return self._statement is not None and self._statement.closed

    @property
    def connection(self) -> Any:
        """Connection held until preparation; None once the real statement exists."""
        return self._connection

    @property
    def config(self) -> StatementConfig:
        if self._statement is not None:
            return self._statement.config
        return self._config

    @property
    def bindings(self) -> dict[int, Binding]:
        """Bindings recorded since the last clear, keyed by position."""
        return dict(self._bindings)

    def _check_open(self) -> None:
        if self._state is ProxyState.CLOSED:
            raise StatementClosedError()

    def _prepared_statement(self, operation: str) -> PreparedStatement:
        self._check_open()
        if self._statement is None:
            raise NotYetPreparedError(operation)
        return self._statement

    def _real_position(self, index: int, size: int) -> int:
        if index not in self._real_positions:
            raise InvalidParameterIndexError(index, len(self._real_positions))
        if self._sizes[index] != size:
            raise ArrayReexpansionError(index, self._sizes[index], size)
        return self._real_positions[index]

    # --- Binding ---

    def _record(self, binding: Binding) -> None:
        self._check_open()
        if self._statement is not None:
            binding.apply(self._statement, self._real_position(binding.index, binding.size))
            return
        self._bindings[binding.index] = binding
        self._state = ProxyState.BOUND

    def _bind(self, index: int, value: Any, sql_type: SqlType) -> None:
        self._record(ScalarBinding(index, value, sql_type))

    def set_array(self, parameter: int | str, elements: Iterable[Any]) -> None:
        """Bind elements for one IN clause placeholder, expanded at execution."""
        if elements is None:
            raise UnmappableArrayTypeError("cannot bind None as an array")
        if isinstance(elements, (str, bytes)):
            raise TypeError(f"set_array expects a collection, got {type(elements).__name__}")
        values = tuple(elements)
        if not values:
            raise UnmappableArrayTypeError("cannot expand an empty array")
        for index in self.positions(parameter):
            self._record(ArrayBinding(index, values))

    def set_sql_array(self, parameter: int | str, array: Any) -> None:
        raise SimulatedArrayUnsupportedError()

    def create_array(self, type_name: str, elements: Iterable[Any]) -> Any:
        raise SimulatedArrayUnsupportedError()

    def create_array_of(self, elements: Iterable[Any]) -> Any:
        raise SimulatedArrayUnsupportedError()

    def clear_parameters(self) -> None:
        self._check_open()
        if self._statement is not None:
            # the expanded layout stays; only the values go
            self._statement.clear_parameters()
            return
        self._bindings.clear()
        self._state = ProxyState.UNBOUND

    # --- Configuration and batches ---

    def configure(self, **settings: Any) -> None:
        self._check_open()
        if self._statement is not None:
            self._statement.configure(**settings)
        else:
            self._config = self._config.updated(**settings)

    def add_batch(self) -> None:
        self._check_open()
        if self._statement is not None:
            self._statement.add_batch()
        else:
            self._pending_batches.append(dict(self._bindings))

    def clear_batch(self) -> None:
        self._check_open()
        if self._statement is not None:
            self._statement.clear_batch()
        else:
            self._pending_batches.clear()

    # --- Preparation ---

    def _replay(
        self,
        statement: PreparedStatement,
        bindings: Mapping[int, Binding],
        positions: Mapping[int, int],
        sizes: Mapping[int, int],
    ) -> None:
        for index in sorted(bindings):
            binding = bindings[index]
            if index not in positions:
                raise InvalidParameterIndexError(index, len(positions))
            if binding.size != sizes[index]:
                raise ArrayReexpansionError(index, sizes[index], binding.size)
            binding.apply(statement, positions[index])

    def _prepare(self) -> PreparedStatement:
        # a batch queued before clear_parameters still defines the layout
        layout = self._bindings
        if not layout and self._pending_batches:
            layout = self._pending_batches[-1]
        expanded, positions = expand_placeholders(self._sql, layout)
        sizes = {index: binding.size for index, binding in layout.items()}

        statement = PreparedStatement(
            self._connection, expanded, self._adapter, self._return_generated_keys
        )
        try:
            changes = self._config.changes()
            if changes:
                statement.configure(**changes)
            for batch in self._pending_batches:
                self._replay(statement, batch, positions, sizes)
                statement.add_batch()
            self._replay(statement, self._bindings, positions, sizes)
        except Exception:
            statement.close()
            raise

        self._statement = statement
        self._connection = None
        self._real_positions = positions
        self._sizes = sizes
        self._bindings = {}
        self._pending_batches = []
        self._state = ProxyState.PREPARED
        return statement

    def _executable(self) -> PreparedStatement:
        self._check_open()
        if self._statement is not None:
            return self._statement
        return self._prepare()

    # --- Execution ---

    def execute_query(self) -> ResultSet:
        return self._executable().execute_query()

    def execute_update(self) -> int:
        return self._executable().execute_update()

    def execute(self) -> bool:
        return self._executable().execute()

    def execute_batch(self) -> list[int]:
        return self._executable().execute_batch()

    # --- Delegate-only accessors ---

    def get_result_set(self) -> ResultSet | None:
        return self._prepared_statement("get_result_set").get_result_set()

    def get_update_count(self) -> int:
        return self._prepared_statement("get_update_count").get_update_count()

    def get_generated_keys(self) -> ResultSet:
        return self._prepared_statement("get_generated_keys").get_generated_keys()

    def get_warnings(self) -> Any:
        return self._prepared_statement("get_warnings").get_warnings()

    def get_metadata(self) -> Any:
        return self._prepared_statement("get_metadata").get_metadata()

    def get_parameter_metadata(self) -> tuple[BoundParameter | None, ...]:
        return self._prepared_statement("get_parameter_metadata").get_parameter_metadata()

    def cancel(self) -> None:
        self._prepared_statement("cancel").cancel()

    def unwrap(self) -> PreparedStatement:
        """The real statement, once prepared."""
        return self._prepared_statement("unwrap")

    def close(self) -> None:
        if self._state is ProxyState.CLOSED:
            return
        statement = self._statement
        self._state = ProxyState.CLOSED
        self._statement = None
        self._connection = None
        self._bindings = {}
        self._pending_batches = []
        if statement is not None:
            statement.close()
