"""Callback protocols.

A StatementBinding sets parameters on a freshly prepared statement. A
ResultMapping turns the current row into a value. Plain functions and
lambdas satisfy both.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from better_sql.core.results import ResultRow
    from better_sql.core.statement import StatementHandle

T_co = TypeVar("T_co", covariant=True)


class StatementBinding(Protocol):
    """Binds parameters on a statement."""

    def __call__(self, statement: StatementHandle) -> None: ...


class ResultMapping(Protocol[T_co]):
    """Maps one result row to a value."""

    def __call__(self, row: ResultRow) -> T_co: ...
