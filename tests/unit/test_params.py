"""Unit tests for named parameter parsing and placeholder rewriting."""

from __future__ import annotations

import pytest

from better_sql.core.params import (
    convert_placeholders,
    count_placeholders,
    detect_in_clause,
    parse_named_parameters,
    split_placeholders,
)


class TestParseNamedParameters:
    def test_single_parameter(self) -> None:
        named = parse_named_parameters("SELECT * FROM users WHERE id = :user_id")
        assert named is not None
        assert named.processed_sql == "SELECT * FROM users WHERE id = ?"
        assert named.get_indices("user_id") == (1,)

    def test_repeated_name_records_every_position(self) -> None:
        named = parse_named_parameters("SELECT :a, :b, :a")
        assert named is not None
        assert named.processed_sql == "SELECT ?, ?, ?"
        assert named.get_indices("a") == (1, 3)
        assert named.get_indices("b") == (2,)
        assert named.parameter_count == 3

    def test_names_keep_order_of_appearance(self) -> None:
        named = parse_named_parameters("UPDATE t SET b = :b, a = :a WHERE id = :id")
        assert named is not None
        assert named.names == ["b", "a", "id"]

    def test_unknown_name_has_no_indices(self) -> None:
        named = parse_named_parameters("SELECT :a")
        assert named is not None
        assert named.get_indices("missing") is None

    def test_positional_template_is_not_parsed(self) -> None:
        assert parse_named_parameters("SELECT * FROM t WHERE a = ? AND b = :b") is None

    def test_template_without_colon(self) -> None:
        assert parse_named_parameters("SELECT 1") is None

    def test_colons_without_identifier(self) -> None:
        assert parse_named_parameters("SELECT a :: int, b : c FROM t") is None

    def test_colon_before_digit_is_not_a_parameter(self) -> None:
        named = parse_named_parameters("SELECT '12:30', :1, :x")
        assert named is not None
        assert named.processed_sql == "SELECT '12:30', :1, ?"
        assert named.names == ["x"]

    def test_single_quoted_literal_is_skipped(self) -> None:
        named = parse_named_parameters("SELECT * FROM t WHERE col = ':not_a_param' AND id = :id")
        assert named is not None
        assert named.processed_sql == "SELECT * FROM t WHERE col = ':not_a_param' AND id = ?"
        assert named.names == ["id"]

    def test_double_quoted_identifier_is_skipped(self) -> None:
        named = parse_named_parameters('SELECT ":x" FROM t WHERE id = :id')
        assert named is not None
        assert named.names == ["id"]

    def test_unterminated_quote_swallows_the_rest(self) -> None:
        named = parse_named_parameters("SELECT :a, 'open :b")
        assert named is not None
        assert named.processed_sql == "SELECT ?, 'open :b"
        assert named.names == ["a"]

    def test_underscore_and_digits_in_name(self) -> None:
        named = parse_named_parameters("SELECT :user_id2")
        assert named is not None
        assert named.names == ["user_id2"]

    def test_none_sql(self) -> None:
        with pytest.raises(TypeError):
            parse_named_parameters(None)  # type: ignore[arg-type]

    def test_unprocessed_sql_is_kept(self) -> None:
        sql = "SELECT :a"
        named = parse_named_parameters(sql)
        assert named is not None
        assert named.unprocessed_sql == sql


class TestSplitPlaceholders:
    def test_segments(self) -> None:
        assert list(split_placeholders("a = ? AND b = ?")) == [
            (False, "a = "),
            (True, "?"),
            (False, " AND b = "),
            (True, "?"),
        ]

    def test_quoted_question_mark_is_text(self) -> None:
        assert count_placeholders("SELECT '?' FROM t WHERE id = ?") == 1

    def test_no_placeholders(self) -> None:
        assert count_placeholders("SELECT 1") == 0


class TestConvertPlaceholders:
    def test_qmark_passthrough(self) -> None:
        sql = "SELECT * FROM t WHERE id = ?"
        assert convert_placeholders(sql, "qmark") == sql

    def test_format(self) -> None:
        assert convert_placeholders("a = ? AND b = ?", "format") == "a = %s AND b = %s"

    def test_format_doubles_percent(self) -> None:
        sql = "SELECT * FROM t WHERE name LIKE 'a%' AND id = ?"
        expected = "SELECT * FROM t WHERE name LIKE 'a%%' AND id = %s"
        assert convert_placeholders(sql, "format") == expected

    def test_format_without_placeholders_is_untouched(self) -> None:
        sql = "SELECT * FROM t WHERE name LIKE 'a%'"
        assert convert_placeholders(sql, "format") == sql

    def test_numeric(self) -> None:
        assert convert_placeholders("a = ? AND b = ?", "numeric") == "a = :1 AND b = :2"

    def test_quoted_question_mark_is_kept(self) -> None:
        assert convert_placeholders("SELECT '?', ?", "format") == "SELECT '?', %s"

    def test_unsupported_paramstyle(self) -> None:
        with pytest.raises(ValueError, match="pyformat"):
            convert_placeholders("SELECT ?", "pyformat")


class TestDetectInClause:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM t WHERE id IN (:ids)",
            "select * from t where id in (?)",
            "DELETE FROM t WHERE id IN (?) AND flag = ?",
            "SELECT * FROM t WHERE id\tIN\t(?)",
            "SELECT * FROM t WHERE id IN (SELECT unnest(?))",
        ],
    )
    def test_detected(self, sql: str) -> None:
        assert detect_in_clause(sql)

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM t WHERE id = ?",
            "SELECT * FROM t WHERE id IN(?)",
            "SELECT * FROM a JOIN (SELECT 1) b ON true",
            "INSERT INTO t (a, b) VALUES (?, ?)",
            "SELECT * FROM t\nWHERE id IN (?)",
            "SELECT * FROM t WHERE id IN (\n?)",
        ],
    )
    def test_not_detected(self, sql: str) -> None:
        assert not detect_in_clause(sql)
