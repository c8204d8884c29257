"""Prepared statements with positional and :named parameters.

PreparedStatement binds values into 1-based slots and hands them to the
driver in its own paramstyle when it executes. BetterPreparedStatement puts
:named setters on top of one. Both share the setter surface defined by
StatementHandle, as does the deferred-binding proxy in
``better_sql.core.delayed``.
"""

from __future__ import annotations

import datetime
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from better_sql.core.enums import SqlType
from better_sql.core.exceptions import (
    InvalidParameterIndexError,
    NoNamedParametersError,
    ParameterBindingMismatchError,
    StatementClosedError,
    UnknownNamedParameterError,
    UnmappableArrayTypeError,
)
from better_sql.core.options import StatementConfig
from better_sql.core.params import (
    NamedParameters,
    convert_placeholders,
    count_placeholders,
    parse_named_parameters,
)
from better_sql.core.results import ResultSet
from better_sql.core.types import SqlArray, array_type_name, kind_of_value, sql_type_of

logger = logging.getLogger(__name__)

_INTEGER_RANGES: dict[SqlType, tuple[int, int]] = {
    SqlType.TINYINT: (-(2**7), 2**7 - 1),
    SqlType.SMALLINT: (-(2**15), 2**15 - 1),
    SqlType.INTEGER: (-(2**31), 2**31 - 1),
    SqlType.BIGINT: (-(2**63), 2**63 - 1),
}

_BYTES_TYPES = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class BoundParameter:
    """Value bound to one slot, tagged with its SQL type code."""

    value: Any
    sql_type: SqlType


def _type_error(setter: str, expected: str, value: Any) -> TypeError:
    return TypeError(f"{setter} expects {expected}, got {type(value).__name__}")


def _integer(setter: str, value: Any, sql_type: SqlType) -> int:
    # bool is an int subclass but never a valid integer parameter
    if isinstance(value, bool) or not isinstance(value, int):
        raise _type_error(setter, "int", value)
    low, high = _INTEGER_RANGES[sql_type]
    if not low <= value <= high:
        raise ValueError(f"{setter}: {value} is out of range for {sql_type.name}")
    return value


def _floating(setter: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _type_error(setter, "float", value)
    return float(value)


def _binary(setter: str, value: Any) -> bytes:
    if not isinstance(value, _BYTES_TYPES):
        raise _type_error(setter, "bytes", value)
    return bytes(value)


def _infer_sql_type(value: Any) -> SqlType:
    if value is None:
        return SqlType.NULL
    if isinstance(value, SqlArray):
        return SqlType.ARRAY
    kind = kind_of_value(value)
    return SqlType.OTHER if kind is None else sql_type_of(kind)


class StatementHandle(ABC):
    """Setter and execution surface shared by every statement flavour.

    Every setter takes ``parameter`` as a 1-based position (int) or a
    :named parameter (str). A name is bound at each of its positions in
    order; the first failure stops the rest. Values are checked when the
    setter is called, whatever the statement does with them afterwards.
    """

    _named: NamedParameters | None = None

    @property
    def named_parameters(self) -> NamedParameters | None:
        return self._named

    def positions(self, parameter: int | str) -> tuple[int, ...]:
        """Resolve a parameter reference to its 1-based positions."""
        if not isinstance(parameter, str):
            return (parameter,)
        if self._named is None:
            raise NoNamedParametersError()
        positions = self._named.get_indices(parameter)
        if positions is None:
            raise UnknownNamedParameterError(parameter, self._named.unprocessed_sql)
        return positions

    @abstractmethod
    def _bind(self, index: int, value: Any, sql_type: SqlType) -> None:
        """Bind a checked value at one position."""

    def _set(self, parameter: int | str, value: Any, sql_type: SqlType) -> None:
        for index in self.positions(parameter):
            self._bind(index, value, sql_type)

    # --- Typed setters ---

    def set_null(self, parameter: int | str, sql_type: SqlType = SqlType.NULL) -> None:
        self._set(parameter, None, SqlType(sql_type))

    def set_object(self, parameter: int | str, value: Any, sql_type: SqlType | None = None) -> None:
        """Bind any value; the type code is inferred when not given."""
        resolved = _infer_sql_type(value) if sql_type is None else SqlType(sql_type)
        self._set(parameter, value, resolved)

    def set_boolean(self, parameter: int | str, value: bool) -> None:
        if not isinstance(value, bool):
            raise _type_error("set_boolean", "bool", value)
        self._set(parameter, value, SqlType.BOOLEAN)

    def set_byte(self, parameter: int | str, value: int) -> None:
        self._set(parameter, _integer("set_byte", value, SqlType.TINYINT), SqlType.TINYINT)

    def set_short(self, parameter: int | str, value: int) -> None:
        self._set(parameter, _integer("set_short", value, SqlType.SMALLINT), SqlType.SMALLINT)

    def set_int(self, parameter: int | str, value: int) -> None:
        self._set(parameter, _integer("set_int", value, SqlType.INTEGER), SqlType.INTEGER)

    def set_long(self, parameter: int | str, value: int) -> None:
        self._set(parameter, _integer("set_long", value, SqlType.BIGINT), SqlType.BIGINT)

    def set_float(self, parameter: int | str, value: float) -> None:
        self._set(parameter, _floating("set_float", value), SqlType.REAL)

    def set_double(self, parameter: int | str, value: float) -> None:
        self._set(parameter, _floating("set_double", value), SqlType.DOUBLE)

    def set_decimal(self, parameter: int | str, value: Decimal) -> None:
        if not isinstance(value, Decimal):
            raise _type_error("set_decimal", "Decimal", value)
        self._set(parameter, value, SqlType.NUMERIC)

    def set_string(self, parameter: int | str, value: str) -> None:
        if not isinstance(value, str):
            raise _type_error("set_string", "str", value)
        self._set(parameter, value, SqlType.VARCHAR)

    def set_clob(self, parameter: int | str, value: str) -> None:
        if not isinstance(value, str):
            raise _type_error("set_clob", "str", value)
        self._set(parameter, value, SqlType.CLOB)

    def set_bytes(self, parameter: int | str, value: bytes) -> None:
        self._set(parameter, _binary("set_bytes", value), SqlType.BINARY)

    def set_blob(self, parameter: int | str, value: bytes) -> None:
        self._set(parameter, _binary("set_blob", value), SqlType.BLOB)

    def set_date(self, parameter: int | str, value: datetime.date) -> None:
        if not isinstance(value, datetime.date):
            raise _type_error("set_date", "date", value)
        if isinstance(value, datetime.datetime):
            value = value.date()
        self._set(parameter, value, SqlType.DATE)

    def set_time(self, parameter: int | str, value: datetime.time) -> None:
        if not isinstance(value, datetime.time):
            raise _type_error("set_time", "time", value)
        self._set(parameter, value, SqlType.TIME)

    def set_timestamp(self, parameter: int | str, value: datetime.datetime) -> None:
        if not isinstance(value, datetime.datetime):
            raise _type_error("set_timestamp", "datetime", value)
        self._set(parameter, value, SqlType.TIMESTAMP)

    # --- Nullable setters: None binds NULL tagged with the setter's type ---

    def set_boolean_nullable(self, parameter: int | str, value: bool | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.BOOLEAN)
        else:
            self.set_boolean(parameter, value)

    def set_byte_nullable(self, parameter: int | str, value: int | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.TINYINT)
        else:
            self.set_byte(parameter, value)

    def set_short_nullable(self, parameter: int | str, value: int | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.SMALLINT)
        else:
            self.set_short(parameter, value)

    def set_int_nullable(self, parameter: int | str, value: int | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.INTEGER)
        else:
            self.set_int(parameter, value)

    def set_long_nullable(self, parameter: int | str, value: int | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.BIGINT)
        else:
            self.set_long(parameter, value)

    def set_float_nullable(self, parameter: int | str, value: float | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.REAL)
        else:
            self.set_float(parameter, value)

    def set_double_nullable(self, parameter: int | str, value: float | None) -> None:
        if value is None:
            self.set_null(parameter, SqlType.DOUBLE)
        else:
            self.set_double(parameter, value)

    # --- Arrays ---

    def set_array(self, parameter: int | str, elements: Iterable[Any]) -> None:
        """Bind a sequence as one native array parameter."""
        self.set_sql_array(parameter, self.create_array_of(elements))

    def set_sql_array(self, parameter: int | str, array: Any) -> None:
        """Bind an array value built by create_array or create_array_of."""
        self._set(parameter, array, SqlType.ARRAY)

    @abstractmethod
    def create_array(self, type_name: str, elements: Iterable[Any]) -> Any:
        """Build a native array of *type_name* elements."""

    @abstractmethod
    def create_array_of(self, elements: Iterable[Any]) -> Any:
        """Build a native array, naming the element type after the first element."""

    # --- Configuration and execution ---

    @property
    @abstractmethod
    def sql(self) -> str:
        """Positional SQL of this statement."""

    @property
    @abstractmethod
    def closed(self) -> bool: ...

    @property
    @abstractmethod
    def config(self) -> StatementConfig: ...

    @abstractmethod
    def configure(self, **settings: Any) -> None:
        """Apply StatementConfig settings (max_rows, fetch_size, query_timeout, ...)."""

    @abstractmethod
    def clear_parameters(self) -> None: ...

    @abstractmethod
    def add_batch(self) -> None:
        """Queue the current parameters for execute_batch."""

    @abstractmethod
    def clear_batch(self) -> None: ...

    @abstractmethod
    def execute_query(self) -> ResultSet: ...

    @abstractmethod
    def execute_update(self) -> int: ...

    def execute_large_update(self) -> int:
        return self.execute_update()

    @abstractmethod
    def execute(self) -> bool:
        """Execute; True when the statement produced a result set."""

    @abstractmethod
    def execute_batch(self) -> list[int]: ...

    @abstractmethod
    def get_result_set(self) -> ResultSet | None: ...

    @abstractmethod
    def get_update_count(self) -> int: ...

    @abstractmethod
    def get_generated_keys(self) -> ResultSet: ...

    @abstractmethod
    def get_warnings(self) -> Any: ...

    @abstractmethod
    def get_metadata(self) -> Any: ...

    @abstractmethod
    def get_parameter_metadata(self) -> tuple[BoundParameter | None, ...]: ...

    @abstractmethod
    def cancel(self) -> None: ...

    @abstractmethod
    def unwrap(self) -> Any: ...

    @abstractmethod
    def close(self) -> None:
        """Release the statement. Calling it again does nothing."""

    def __enter__(self) -> StatementHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()


class PreparedStatement(StatementHandle):
    """Prepared statement over a DB-API connection.

    Only positional parameters are accepted. Every execution opens a fresh
    cursor through the adapter and closes the previous one together with its
    result set.

    Args:
        connection: Open DB-API connection. The caller owns it.
        sql: SQL using `?` placeholders.
        adapter: Adapter of the connection's driver.
        return_generated_keys: Make generated keys available through
            get_generated_keys after an insert.
    """

    def __init__(
        self,
        connection: Any,
        sql: str,
        adapter: Any,
        return_generated_keys: bool = False,
    ) -> None:
        self._connection = connection
        self._adapter = adapter
        self._sql = sql
        self._return_generated_keys = return_generated_keys
        driver_sql = adapter.generated_keys_sql(sql) if return_generated_keys else sql
        self._driver_sql = convert_placeholders(driver_sql, adapter.paramstyle)
        self._parameter_count = count_placeholders(sql)
        self._parameters: dict[int, BoundParameter] = {}
        self._batch: list[tuple[BoundParameter, ...]] = []
        self._config = StatementConfig()
        self._cursor: Any = None
        self._result_set: ResultSet | None = None
        self._update_count = -1
        self._closed = False
        logger.debug("Prepared statement with %d parameter(s): %s", self._parameter_count, sql)

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def driver_sql(self) -> str:
        """SQL as sent to the driver, in its paramstyle."""
        return self._driver_sql

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def parameter_count(self) -> int:
        return self._parameter_count

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> StatementConfig:
        return self._config

    def configure(self, **settings: Any) -> None:
        self._check_open()
        self._config = self._config.updated(**settings)

    def parameter(self, index: int) -> BoundParameter | None:
        """Value currently bound at *index*, if any."""
        return self._parameters.get(index)

    def bind_parameter(self, index: int, value: Any, sql_type: SqlType) -> None:
        """Store a value in slot *index* without further checks."""
        self._check_open()
        if not 1 <= index <= self._parameter_count:
            raise InvalidParameterIndexError(index, self._parameter_count)
        self._parameters[index] = BoundParameter(value, sql_type)

    def _bind(self, index: int, value: Any, sql_type: SqlType) -> None:
        self.bind_parameter(index, value, sql_type)

    def create_array(self, type_name: str, elements: Iterable[Any]) -> Any:
        self._check_open()
        return self._adapter.create_array(self._connection, type_name, list(elements))

    def create_array_of(self, elements: Iterable[Any]) -> Any:
        if elements is None:
            raise UnmappableArrayTypeError("cannot create an array from None")
        if isinstance(elements, (str, bytes)):
            raise TypeError(f"expected a collection of elements, got {type(elements).__name__}")
        values = list(elements)
        if not values:
            raise UnmappableArrayTypeError("cannot infer the element type of an empty array")
        kind = kind_of_value(values[0])
        if kind is None:
            raise UnmappableArrayTypeError(
                f"no array type mapping for {type(values[0]).__name__}"
            )
        return self.create_array(array_type_name(kind), values)

    def clear_parameters(self) -> None:
        self._check_open()
        self._parameters.clear()

    def add_batch(self) -> None:
        self._check_open()
        self._batch.append(self._bound_parameters())

    def clear_batch(self) -> None:
        self._check_open()
        self._batch.clear()

    def _check_open(self) -> None:
        if self._closed:
            raise StatementClosedError()

    def _bound_parameters(self) -> tuple[BoundParameter, ...]:
        if len(self._parameters) != self._parameter_count:
            raise ParameterBindingMismatchError(self._parameter_count, sorted(self._parameters))
        return tuple(self._parameters[i] for i in range(1, self._parameter_count + 1))

    def _release_result(self) -> None:
        result_set, self._result_set = self._result_set, None
        if result_set is not None:
            result_set.close()
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            cursor.close()

    def _result_closed(self, result_set: ResultSet) -> None:
        if result_set is not self._result_set:
            return
        self._result_set = None
        if self._config.close_on_completion:
            self.close()

    def _open_cursor(self) -> Any:
        self._release_result()
        self._cursor = self._adapter.cursor(self._connection, self._config.cursor_name)
        if self._config.fetch_size:
            self._cursor.arraysize = self._config.fetch_size
        return self._cursor

    def _execute(self, cursor: Any, parameters: Sequence[BoundParameter]) -> None:
        params = [self._adapter.adapt_parameter(p.value) for p in parameters]
        timeout = self._config.query_timeout
        if not timeout:
            self._adapter.execute(cursor, self._driver_sql, params)
            return
        self._adapter.apply_query_timeout(self._connection, timeout)
        try:
            self._adapter.execute(cursor, self._driver_sql, params)
        finally:
            self._adapter.apply_query_timeout(self._connection, None)

    def _new_result_set(self, cursor: Any) -> ResultSet:
        result_set = ResultSet(
            cursor,
            max_rows=self._config.max_rows,
            max_field_size=self._config.max_field_size,
            on_close=lambda: self._result_closed(result_set),
        )
        self._result_set = result_set
        return result_set

    def execute_query(self) -> ResultSet:
        self._check_open()
        parameters = self._bound_parameters()
        cursor = self._open_cursor()
        self._execute(cursor, parameters)
        self._update_count = -1
        return self._new_result_set(cursor)

    def execute_update(self) -> int:
        self._check_open()
        parameters = self._bound_parameters()
        cursor = self._open_cursor()
        self._execute(cursor, parameters)
        # DB-API reports -1 when the count is not applicable (DDL)
        self._update_count = max(cursor.rowcount, 0)
        return self._update_count

    def execute(self) -> bool:
        self._check_open()
        parameters = self._bound_parameters()
        cursor = self._open_cursor()
        self._execute(cursor, parameters)
        if cursor.description is not None:
            self._update_count = -1
            self._new_result_set(cursor)
            return True
        self._update_count = max(cursor.rowcount, 0)
        return False

    def execute_batch(self) -> list[int]:
        self._check_open()
        batch, self._batch = self._batch, []
        cursor = self._open_cursor()
        counts: list[int] = []
        for parameters in batch:
            self._execute(cursor, parameters)
            counts.append(max(cursor.rowcount, 0))
        logger.debug("Executed batch of %d", len(counts))
        self._update_count = -1
        return counts

    def get_result_set(self) -> ResultSet | None:
        return self._result_set

    def get_update_count(self) -> int:
        """Row count of the last update; -1 after a query."""
        return self._update_count

    def get_generated_keys(self) -> ResultSet:
        self._check_open()
        if self._cursor is None:
            return ResultSet.from_rows([], [])
        return self._adapter.generated_keys(self._cursor)

    def get_warnings(self) -> Any:
        # DB-API drivers raise warnings instead of collecting them
        return None

    def get_metadata(self) -> Any:
        """``cursor.description`` of the last execution, if any."""
        if self._cursor is None:
            return None
        return self._cursor.description

    def get_parameter_metadata(self) -> tuple[BoundParameter | None, ...]:
        return tuple(self._parameters.get(i) for i in range(1, self._parameter_count + 1))

    def cancel(self) -> None:
        self._check_open()
        self._adapter.cancel(self._connection)

    def unwrap(self) -> Any:
        """DB-API cursor of the last execution."""
        return self._cursor

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._release_result()
        self._batch.clear()


class BetterPreparedStatement(StatementHandle):
    """Statement facade resolving :named parameters onto a PreparedStatement."""

    def __init__(self, statement: PreparedStatement, named: NamedParameters | None = None) -> None:
        self._statement = statement
        self._named = named

    @classmethod
    def prepare(
        cls,
        connection: Any,
        sql: str,
        adapter: Any,
        return_generated_keys: bool = False,
    ) -> BetterPreparedStatement:
        """Parse :named parameters and prepare the processed SQL right away."""
        named = parse_named_parameters(sql)
        processed = named.processed_sql if named is not None else sql
        return cls(PreparedStatement(connection, processed, adapter, return_generated_keys), named)

    @property
    def statement(self) -> PreparedStatement:
        return self._statement

    @property
    def sql(self) -> str:
        return self._statement.sql

    @property
    def closed(self) -> bool:
        return self._statement.closed

    @property
    def config(self) -> StatementConfig:
        return self._statement.config

    def _bind(self, index: int, value: Any, sql_type: SqlType) -> None:
        self._statement.bind_parameter(index, value, sql_type)

    def create_array(self, type_name: str, elements: Iterable[Any]) -> Any:
        return self._statement.create_array(type_name, elements)

    def create_array_of(self, elements: Iterable[Any]) -> Any:
        return self._statement.create_array_of(elements)

    def configure(self, **settings: Any) -> None:
        self._statement.configure(**settings)

    def clear_parameters(self) -> None:
        self._statement.clear_parameters()

    def add_batch(self) -> None:
        self._statement.add_batch()

    def clear_batch(self) -> None:
        self._statement.clear_batch()

    def execute_query(self) -> ResultSet:
        return self._statement.execute_query()

    def execute_update(self) -> int:
        return self._statement.execute_update()

    def execute(self) -> bool:
        return self._statement.execute()

    def execute_batch(self) -> list[int]:
        return self._statement.execute_batch()

    def get_result_set(self) -> ResultSet | None:
        return self._statement.get_result_set()

    def get_update_count(self) -> int:
        return self._statement.get_update_count()

    def get_generated_keys(self) -> ResultSet:
        return self._statement.get_generated_keys()

    def get_warnings(self) -> Any:
        return self._statement.get_warnings()

    def get_metadata(self) -> Any:
        return self._statement.get_metadata()

    def get_parameter_metadata(self) -> tuple[BoundParameter | None, ...]:
        return self._statement.get_parameter_metadata()

    def cancel(self) -> None:
        self._statement.cancel()

    def unwrap(self) -> PreparedStatement:
        return self._statement

    def close(self) -> None:
        self._statement.close()
