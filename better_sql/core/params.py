"""SQL parameter parsing and placeholder rewriting.

Named parameters (`:name`) are rewritten to positional `?` placeholders once
per template. Drivers that do not use the qmark style get their own
placeholder syntax at execution time. String literals are never touched.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)

# Matched against lowered text. `.` does not cross newlines, so templates
# spanning several lines around the IN clause do not match.
_IN_CLAUSE_PATTERN = re.compile(r".+[\t\n ]+in[\t\n ]+\(.*")


def _is_identifier_start(ch: str) -> bool:
    return ch.isidentifier()


def _is_identifier_part(ch: str) -> bool:
    return ("_" + ch).isidentifier()


@dataclass(frozen=True)
class NamedParameters:
    """Result of parsing a template with :named parameters.

    Attributes:
        unprocessed_sql: The template as written.
        processed_sql: The template with every token replaced by `?`.
        indices: Parameter name -> 1-based positions in processed_sql,
            in order of appearance.
    """

    unprocessed_sql: str
    processed_sql: str
    indices: dict[str, tuple[int, ...]]

    def get_indices(self, name: str) -> tuple[int, ...] | None:
        return self.indices.get(name)

    @property
    def names(self) -> list[str]:
        return list(self.indices)

    @property
    def parameter_count(self) -> int:
        return sum(len(positions) for positions in self.indices.values())


def parse_named_parameters(sql: str) -> NamedParameters | None:
    """Rewrite `:name` tokens to `?` and record their positions.

    Returns None when the template already uses `?` placeholders, has no
    colon, or has no token outside quotes (for example only `::` casts).
    An unterminated quote swallows the rest of the template.
    """
    if sql is None:
        raise TypeError("sql must not be None")
    if "?" in sql or ":" not in sql:
        return None

    processed: list[str] = []
    indices: dict[str, list[int]] = {}
    position = 0
    in_single_quote = False
    in_double_quote = False
    i = 0
    length = len(sql)
    while i < length:
        c = sql[i]
        if in_single_quote:
            if c == "'":
                in_single_quote = False
        elif in_double_quote:
            if c == '"':
                in_double_quote = False
        elif c == "'":
            in_single_quote = True
        elif c == '"':
            in_double_quote = True
        elif c == ":" and i + 1 < length and _is_identifier_start(sql[i + 1]):
            j = i + 2
            while j < length and _is_identifier_part(sql[j]):
                j += 1
            name = sql[i + 1 : j]
            position += 1
            indices.setdefault(name, []).append(position)
            processed.append("?")
            i = j
            continue
        processed.append(c)
        i += 1

    if not indices:
        return None
    named = NamedParameters(
        unprocessed_sql=sql,
        processed_sql="".join(processed),
        indices={name: tuple(positions) for name, positions in indices.items()},
    )
    logger.debug("Parsed %d named parameter(s) %s", position, named.names)
    return named


def split_placeholders(sql: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_placeholder, text)`` segments of a positional template.

    Quote handling matches parse_named_parameters, so a `?` inside a quoted
    literal is part of a text segment.
    """
    start = 0
    in_single_quote = False
    in_double_quote = False
    for i, c in enumerate(sql):
        if in_single_quote:
            if c == "'":
                in_single_quote = False
        elif in_double_quote:
            if c == '"':
                in_double_quote = False
        elif c == "'":
            in_single_quote = True
        elif c == '"':
            in_double_quote = True
        elif c == "?":
            if i > start:
                yield False, sql[start:i]
            yield True, "?"
            start = i + 1
    if start < len(sql):
        yield False, sql[start:]


def count_placeholders(sql: str) -> int:
    """Number of `?` placeholders outside quoted literals."""
    return sum(1 for is_placeholder, _ in split_placeholders(sql) if is_placeholder)


@lru_cache(maxsize=256)
def convert_placeholders(sql: str, paramstyle: str) -> str:
    """Render `?` placeholders in the driver's paramstyle.

    Args:
        sql: Positional template using `?`.
        paramstyle: 'qmark' (no conversion), 'format' (`%s`) or
            'numeric' (`:1`, `:2`, ...).

    Returns:
        SQL ready for the driver. In 'format' style literal `%` characters
        are doubled when the template has placeholders.
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle not in ("format", "numeric"):
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")

    segments = list(split_placeholders(sql))
    if not any(is_placeholder for is_placeholder, _ in segments):
        return sql

    parts: list[str] = []
    position = 0
    for is_placeholder, text in segments:
        if not is_placeholder:
            parts.append(text.replace("%", "%%") if paramstyle == "format" else text)
            continue
        position += 1
        parts.append("%s" if paramstyle == "format" else f":{position}")
    return "".join(parts)


def detect_in_clause(sql: str) -> bool:
    """Heuristic: does the template look like it ends in an IN (...) clause?

    Used only to route statements to deferred binding when IN clauses are
    simulated. Templates with line breaks anywhere but around the IN keyword
    are missed and take the direct path.
    """
    return _IN_CLAUSE_PATTERN.fullmatch(sql.lower()) is not None
