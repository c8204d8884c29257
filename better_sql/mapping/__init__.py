"""Mapping layer - table metadata, entity mapping and SQL generation."""

from __future__ import annotations

from better_sql.mapping.generator import BetterSqlGenerator
from better_sql.mapping.model import EntityMapper, bind_field, read_field
from better_sql.mapping.protocol import ResultMapping, StatementBinding
from better_sql.mapping.table import (
    FieldDescriptor,
    TableData,
    TableRegistry,
    column,
    inspect_table,
    key,
    transient,
)

__all__ = [
    "BetterSqlGenerator",
    "EntityMapper",
    "bind_field",
    "read_field",
    "ResultMapping",
    "StatementBinding",
    "FieldDescriptor",
    "TableData",
    "TableRegistry",
    "inspect_table",
    "key",
    "column",
    "transient",
]
