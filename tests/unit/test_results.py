"""Unit tests for ResultRow and ResultSet."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from better_sql.core.results import ResultRow, ResultSet


class TestResultRow:
    def test_lookup_by_index_and_name(self) -> None:
        row = ResultRow(["id", "Name"], [1, "Alice"])
        assert row.get_object(1) == 1
        assert row.get_object("name") == "Alice"
        assert row["NAME"] == "Alice"
        assert row.has_column("ID")

    def test_index_out_of_range(self) -> None:
        row = ResultRow(["id"], [1])
        with pytest.raises(IndexError):
            row.get_object(2)
        with pytest.raises(IndexError):
            row.get_object(0)

    def test_unknown_column(self) -> None:
        row = ResultRow(["id"], [1])
        with pytest.raises(KeyError, match="missing"):
            row.get_object("missing")

    def test_null_reads_as_zero(self) -> None:
        row = ResultRow(["n"], [None])
        assert row.get_int("n") == 0
        assert row.get_float("n") == 0.0
        assert row.get_bool("n") is False
        assert row.get_int_nullable("n") is None
        assert row.get_str("n") is None

    def test_conversions(self) -> None:
        row = ResultRow(
            ["b", "flag", "d", "ts", "dt", "blob"],
            [1, "t", "2.50", "2024-01-02 03:04:05", "2024-01-02", "abc"],
        )
        assert row.get_bool("b") is True
        assert row.get_bool("flag") is True
        assert row.get_decimal("d") == Decimal("2.50")
        assert row.get_timestamp("ts") == datetime.datetime(2024, 1, 2, 3, 4, 5)
        assert row.get_date("dt") == datetime.date(2024, 1, 2)
        assert row.get_bytes("blob") == b"abc"

    def test_time_from_timedelta(self) -> None:
        row = ResultRow(["t"], [datetime.timedelta(hours=1, minutes=2)])
        assert row.get_time("t") == datetime.time(1, 2)

    def test_duplicate_column_names_resolve_to_first(self) -> None:
        row = ResultRow(["id", "id"], [1, 2])
        assert row.get_object("id") == 1
        assert row.get_object(2) == 2

    def test_as_dict(self) -> None:
        row = ResultRow(["id", "name"], [1, "Alice"])
        assert row.as_dict() == {"id": 1, "name": "Alice"}


class TestResultSet:
    def test_iterates_fixed_rows(self) -> None:
        result_set = ResultSet.from_rows(["id"], [(1,), (2,)])
        assert [row.get_int(1) for row in result_set] == [1, 2]
        assert result_set.fetch_one() is None

    def test_dict_rows(self) -> None:
        result_set = ResultSet.from_rows(["id", "name"], [{"name": "Alice", "id": 1}])
        row = result_set.fetch_one()
        assert row is not None
        assert row.get_object(1) == 1
        assert row.get_object(2) == "Alice"

    def test_max_rows(self) -> None:
        result_set = ResultSet(columns=["id"], rows=[(1,), (2,), (3,)], max_rows=2)
        assert len(result_set.fetch_all()) == 2

    def test_max_field_size_truncates_text_and_bytes(self) -> None:
        result_set = ResultSet(
            columns=["s", "b", "n"], rows=[("abcdef", b"abcdef", 123456)], max_field_size=3
        )
        row = result_set.fetch_one()
        assert row is not None
        assert row.get_str("s") == "abc"
        assert row.get_bytes("b") == b"abc"
        assert row.get_int("n") == 123456

    def test_close_calls_back_once(self) -> None:
        calls: list[int] = []
        result_set = ResultSet(columns=["id"], rows=[(1,)], on_close=lambda: calls.append(1))
        with result_set:
            pass
        result_set.close()
        assert calls == [1]
        assert result_set.closed
        assert result_set.fetch_one() is None

    def test_reads_cursor(self, sqlite_connection) -> None:
        cursor = sqlite_connection.execute("SELECT 1 AS a, 'x' AS b")
        result_set = ResultSet(cursor)
        assert result_set.columns == ("a", "b")
        row = result_set.fetch_one()
        assert row is not None
        assert row.as_dict() == {"a": 1, "b": "x"}

    def test_cursor_without_result(self, sqlite_connection) -> None:
        cursor = sqlite_connection.execute("CREATE TABLE t (id INTEGER)")
        assert ResultSet(cursor).fetch_all() == []
