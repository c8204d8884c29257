"""Value kinds and the per-direction dispatch over them.

ValueKind is the closed set of scalar kinds the mapper understands. Every
direction (binding a parameter, reading a column, naming a SQL type) is a
single function with one branch per kind, so adding a kind means touching
each function below.
"""

from __future__ import annotations

import datetime
import types
import typing
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from better_sql.core.enums import SqlType

if TYPE_CHECKING:
    from better_sql.core.results import ResultRow


class ValueKind(Enum):
    LONG = "long"
    INT = "int"
    SHORT = "short"
    BYTE = "byte"
    DOUBLE = "double"
    FLOAT = "float"
    BOOLEAN = "boolean"
    CHAR = "char"
    STRING = "string"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BLOB = "blob"
    CLOB = "clob"


def kind_of_value(value: Any) -> ValueKind | None:
    """Infer the kind of a runtime value. None when no kind applies."""
    # bool before int, datetime before date: both are subclasses
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.LONG
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, datetime.datetime):
        return ValueKind.TIMESTAMP
    if isinstance(value, datetime.date):
        return ValueKind.DATE
    if isinstance(value, datetime.time):
        return ValueKind.TIME
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BLOB
    return None


_TYPE_KINDS: dict[type, ValueKind] = {
    bool: ValueKind.BOOLEAN,
    int: ValueKind.LONG,
    float: ValueKind.DOUBLE,
    Decimal: ValueKind.DECIMAL,
    str: ValueKind.STRING,
    datetime.datetime: ValueKind.TIMESTAMP,
    datetime.date: ValueKind.DATE,
    datetime.time: ValueKind.TIME,
    bytes: ValueKind.BLOB,
    bytearray: ValueKind.BLOB,
}


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(inner_type, nullable)`` for ``X | None`` / ``Optional[X]``."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def kind_of_type(annotation: Any) -> ValueKind | None:
    """Infer the kind of a field annotation. None when no kind applies."""
    inner, _ = unwrap_optional(annotation)
    if isinstance(inner, type):
        return _TYPE_KINDS.get(inner)
    return None


def sql_type_of(kind: ValueKind) -> SqlType:
    """Canonical SQL type code of a kind."""
    if kind is ValueKind.LONG:
        return SqlType.BIGINT
    if kind is ValueKind.INT:
        return SqlType.INTEGER
    if kind is ValueKind.SHORT:
        return SqlType.SMALLINT
    if kind is ValueKind.BYTE:
        return SqlType.TINYINT
    if kind is ValueKind.DOUBLE:
        return SqlType.DOUBLE
    if kind is ValueKind.FLOAT:
        return SqlType.REAL
    if kind is ValueKind.BOOLEAN:
        return SqlType.BOOLEAN
    if kind is ValueKind.CHAR:
        return SqlType.CHAR
    if kind is ValueKind.STRING:
        return SqlType.VARCHAR
    if kind is ValueKind.DECIMAL:
        return SqlType.NUMERIC
    if kind is ValueKind.DATE:
        return SqlType.DATE
    if kind is ValueKind.TIME:
        return SqlType.TIME
    if kind is ValueKind.TIMESTAMP:
        return SqlType.TIMESTAMP
    if kind is ValueKind.BLOB:
        return SqlType.BLOB
    if kind is ValueKind.CLOB:
        return SqlType.CLOB
    raise ValueError(f"Unknown value kind: {kind}")


def array_type_name(kind: ValueKind) -> str:
    """Element type name used when creating a native (PostgreSQL) array."""
    if kind is ValueKind.LONG:
        return "bigint"
    if kind is ValueKind.INT:
        return "integer"
    if kind is ValueKind.SHORT or kind is ValueKind.BYTE:
        # no byte type in postgres
        return "smallint"
    if kind is ValueKind.DOUBLE:
        return "float"
    if kind is ValueKind.FLOAT:
        return "float4"
    if kind is ValueKind.BOOLEAN:
        return "boolean"
    if kind is ValueKind.CHAR or kind is ValueKind.STRING:
        return "varchar"
    if kind is ValueKind.DECIMAL:
        return "numeric"
    if kind is ValueKind.DATE:
        return "date"
    if kind is ValueKind.TIME:
        return "time"
    if kind is ValueKind.TIMESTAMP:
        return "timestamp"
    if kind is ValueKind.BLOB:
        return "bytea"
    if kind is ValueKind.CLOB:
        return "text"
    raise ValueError(f"Unknown value kind: {kind}")


def ddl_type_of(kind: ValueKind) -> str:
    """Column type used in generated CREATE TABLE statements."""
    if kind is ValueKind.BLOB:
        return "BLOB"
    if kind is ValueKind.CLOB:
        return "TEXT"
    return array_type_name(kind).upper()


def bind_value(statement: Any, parameter: int | str, kind: ValueKind, value: Any) -> None:
    """Bind *value* with the setter matching *kind*.

    ``None`` binds SQL NULL tagged with the kind's type code. *statement* is
    anything exposing the typed setters (a native statement, facade or proxy).
    """
    if value is None:
        statement.set_null(parameter, sql_type_of(kind))
    elif kind is ValueKind.LONG:
        statement.set_long(parameter, value)
    elif kind is ValueKind.INT:
        statement.set_int(parameter, value)
    elif kind is ValueKind.SHORT:
        statement.set_short(parameter, value)
    elif kind is ValueKind.BYTE:
        statement.set_byte(parameter, value)
    elif kind is ValueKind.DOUBLE:
        statement.set_double(parameter, value)
    elif kind is ValueKind.FLOAT:
        statement.set_float(parameter, value)
    elif kind is ValueKind.BOOLEAN:
        statement.set_boolean(parameter, value)
    elif kind is ValueKind.CHAR:
        statement.set_string(parameter, str(value))
    elif kind is ValueKind.STRING:
        statement.set_string(parameter, value)
    elif kind is ValueKind.DECIMAL:
        statement.set_decimal(parameter, value)
    elif kind is ValueKind.DATE:
        statement.set_date(parameter, value)
    elif kind is ValueKind.TIME:
        statement.set_time(parameter, value)
    elif kind is ValueKind.TIMESTAMP:
        statement.set_timestamp(parameter, value)
    elif kind is ValueKind.BLOB:
        statement.set_blob(parameter, value)
    elif kind is ValueKind.CLOB:
        statement.set_clob(parameter, value)
    else:
        raise ValueError(f"Unknown value kind: {kind}")


def read_value(row: ResultRow, column: int | str, kind: ValueKind, nullable: bool = True) -> Any:
    """Read a column with the getter matching *kind*.

    Non-nullable numeric and boolean kinds read SQL NULL as their zero value.
    """
    if kind in (ValueKind.LONG, ValueKind.INT, ValueKind.SHORT, ValueKind.BYTE):
        return row.get_int_nullable(column) if nullable else row.get_int(column)
    if kind in (ValueKind.DOUBLE, ValueKind.FLOAT):
        return row.get_float_nullable(column) if nullable else row.get_float(column)
    if kind is ValueKind.BOOLEAN:
        return row.get_bool_nullable(column) if nullable else row.get_bool(column)
    if kind is ValueKind.CHAR:
        value = row.get_str(column)
        if value is not None and len(value) != 1:
            raise ValueError(
                f"result set data for character type was longer than length 1. column: {column}"
            )
        return value
    if kind in (ValueKind.STRING, ValueKind.CLOB):
        return row.get_str(column)
    if kind is ValueKind.DECIMAL:
        return row.get_decimal(column)
    if kind is ValueKind.DATE:
        return row.get_date(column)
    if kind is ValueKind.TIME:
        return row.get_time(column)
    if kind is ValueKind.TIMESTAMP:
        return row.get_timestamp(column)
    if kind is ValueKind.BLOB:
        return row.get_bytes(column)
    raise ValueError(f"Unknown value kind: {kind}")


class SqlArray:
    """Native array parameter value.

    Built by an adapter that supports arrays and unpacked by the same
    adapter when the statement executes.
    """

    __slots__ = ("type_name", "elements")

    def __init__(self, type_name: str, elements: typing.Iterable[Any]) -> None:
        self.type_name = type_name
        self.elements = tuple(elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SqlArray):
            return NotImplemented
        return self.type_name == other.type_name and self.elements == other.elements

    def __hash__(self) -> int:
        return hash((self.type_name, self.elements))

    def __repr__(self) -> str:
        return f"SqlArray({self.type_name!r}, {list(self.elements)!r})"
