"""Repository layer - CRUD by primary key."""

from __future__ import annotations

from better_sql.repository.mapper import BetterSqlMapper, SelectBuilder

__all__ = [
    "BetterSqlMapper",
    "SelectBuilder",
]
