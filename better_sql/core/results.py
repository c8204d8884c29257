"""Result rows with typed getters.

ResultSet walks a DB-API cursor (or a fixed list of rows, for generated
keys) and yields ResultRow objects. Columns are addressed by 1-based index
or by case-insensitive name.
"""

from __future__ import annotations

import datetime
from collections import deque
from collections.abc import Callable, Iterator, Sequence
from decimal import Decimal
from typing import Any


def _row_values(row: Any, columns: Sequence[str]) -> tuple[Any, ...]:
    """Normalize a driver row to a tuple in column order.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if isinstance(row, dict):
        return tuple(row[column] for column in columns)
    return tuple(row)


class ResultRow:
    """A single row. Numeric and boolean getters read NULL as zero/False;
    the ``*_nullable`` getters return None instead."""

    __slots__ = ("_columns", "_values", "_lookup")

    def __init__(self, columns: Sequence[str], values: Sequence[Any]) -> None:
        self._columns = tuple(columns)
        self._values = tuple(values)
        self._lookup: dict[str, int] = {}
        for i, name in enumerate(self._columns):
            self._lookup.setdefault(name.lower(), i)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    def _position(self, column: int | str) -> int:
        if isinstance(column, int):
            if not 1 <= column <= len(self._values):
                raise IndexError(f"column index {column} out of range (1..{len(self._values)})")
            return column - 1
        try:
            return self._lookup[column.lower()]
        except KeyError:
            raise KeyError(f"column '{column}' not found in {list(self._columns)}") from None

    def has_column(self, name: str) -> bool:
        return name.lower() in self._lookup

    def get_object(self, column: int | str) -> Any:
        return self._values[self._position(column)]

    def __getitem__(self, column: int | str) -> Any:
        return self.get_object(column)

    def get_str(self, column: int | str) -> str | None:
        value = self.get_object(column)
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)

    def get_int(self, column: int | str) -> int:
        value = self.get_int_nullable(column)
        return 0 if value is None else value

    def get_int_nullable(self, column: int | str) -> int | None:
        value = self.get_object(column)
        return None if value is None else int(value)

    def get_float(self, column: int | str) -> float:
        value = self.get_float_nullable(column)
        return 0.0 if value is None else value

    def get_float_nullable(self, column: int | str) -> float | None:
        value = self.get_object(column)
        return None if value is None else float(value)

    def get_bool(self, column: int | str) -> bool:
        return bool(self.get_bool_nullable(column))

    def get_bool_nullable(self, column: int | str) -> bool | None:
        value = self.get_object(column)
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() in ("1", "t", "true", "y", "yes")
        return bool(value)

    def get_decimal(self, column: int | str) -> Decimal | None:
        value = self.get_object(column)
        if value is None or isinstance(value, Decimal):
            return value
        return Decimal(str(value))

    def get_date(self, column: int | str) -> datetime.date | None:
        value = self.get_object(column)
        if value is None:
            return None
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        return datetime.date.fromisoformat(str(value)[:10])

    def get_time(self, column: int | str) -> datetime.time | None:
        value = self.get_object(column)
        if value is None or isinstance(value, datetime.time):
            return value
        if isinstance(value, datetime.timedelta):
            # mysql-connector returns TIME columns as timedelta
            return (datetime.datetime.min + value).time()
        return datetime.time.fromisoformat(str(value))

    def get_timestamp(self, column: int | str) -> datetime.datetime | None:
        value = self.get_object(column)
        if value is None or isinstance(value, datetime.datetime):
            return value
        if isinstance(value, datetime.date):
            return datetime.datetime.combine(value, datetime.time())
        return datetime.datetime.fromisoformat(str(value))

    def get_bytes(self, column: int | str) -> bytes | None:
        value = self.get_object(column)
        if value is None or isinstance(value, bytes):
            return value
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self._columns, self._values, strict=True))

    def __repr__(self) -> str:
        return f"ResultRow({self.as_dict()!r})"


class ResultSet:
    """Forward-only rows from an executed statement.

    Args:
        cursor: DB-API cursor positioned on a result, or None.
        columns: Column names; read from ``cursor.description`` when omitted.
        rows: Fixed rows used instead of a cursor.
        max_rows: Stop after this many rows (0 or None for no limit).
        max_field_size: Truncate text and binary values to this many
            characters or bytes (0 or None for no limit).
        on_close: Called once when the result set is closed.
    """

    def __init__(
        self,
        cursor: Any = None,
        *,
        columns: Sequence[str] | None = None,
        rows: Sequence[Sequence[Any]] | None = None,
        max_rows: int | None = None,
        max_field_size: int | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._cursor = cursor
        if columns is None:
            description = getattr(cursor, "description", None) or ()
            columns = [desc[0] for desc in description]
        self._columns = tuple(columns)
        self._rows = iter(rows) if rows is not None else None
        self._buffer: deque[Any] = deque()
        self._max_rows = max_rows or None
        self._max_field_size = max_field_size or None
        self._on_close = on_close
        self._returned = 0
        self._closed = False

    @classmethod
    def from_rows(cls, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> ResultSet:
        return cls(columns=columns, rows=rows)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def closed(self) -> bool:
        return self._closed

    def fetch_one(self) -> ResultRow | None:
        """Next row, or None when exhausted."""
        if self._closed:
            return None
        if self._max_rows is not None and self._returned >= self._max_rows:
            return None
        if self._rows is not None:
            raw = next(self._rows, None)
        elif self._cursor is not None and self._columns:
            raw = self._next_cursor_row()
        else:
            raw = None
        if raw is None:
            return None
        self._returned += 1
        values = _row_values(raw, self._columns)
        if self._max_field_size is not None:
            limit = self._max_field_size
            values = tuple(
                value[:limit] if isinstance(value, (str, bytes, bytearray)) else value
                for value in values
            )
        return ResultRow(self._columns, values)

    def _next_cursor_row(self) -> Any:
        # fetchmany() pulls cursor.arraysize rows per round trip
        if not self._buffer:
            self._buffer.extend(self._cursor.fetchmany())
        return self._buffer.popleft() if self._buffer else None

    def fetch_all(self) -> list[ResultRow]:
        return list(self)

    def __iter__(self) -> Iterator[ResultRow]:
        while True:
            row = self.fetch_one()
            if row is None:
                return
            yield row

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()
