"""Entity-level CRUD built on the generator and the support helpers."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from better_sql.core.exceptions import CompositeKeyError, NullPrimaryKeyError, RowCountError
from better_sql.core.options import BetterOptions
from better_sql.core.results import ResultRow
from better_sql.core.statement import StatementHandle
from better_sql.core.support import BetterSqlSupport
from better_sql.mapping.generator import BetterSqlGenerator
from better_sql.mapping.model import EntityMapper, bind_field, read_field
from better_sql.mapping.protocol import ResultMapping, StatementBinding
from better_sql.mapping.table import FieldDescriptor, TableData, TableRegistry

T = TypeVar("T")
K = TypeVar("K")


def _describe_keys(key_values: list[tuple[FieldDescriptor, Any]]) -> str:
    return ", ".join(f"{field.column_name}: {value}" for field, value in key_values)


def _require_single_key(table: TableData, hint: str = "") -> None:
    if table.has_composite_key:
        raise CompositeKeyError(
            f"method not supported for entities with composite keys{hint} "
            f"[table {table.table_name}]"
        )


class BetterSqlMapper:
    """Finds, inserts, updates and deletes entities by primary key.

    Args:
        options: Capability options shared by the generated SQL and the
            statements that run it.
        adapter: Driver adapter; resolved per connection when omitted.
        registry: Table metadata cache; a private one when omitted.
    """

    def __init__(
        self,
        options: BetterOptions | None = None,
        adapter: Any = None,
        registry: TableRegistry | None = None,
    ) -> None:
        self._options = options if options is not None else BetterOptions.defaults()
        self._generator = BetterSqlGenerator(self._options)
        self._support = BetterSqlSupport(self._options, adapter)
        self._registry = registry if registry is not None else TableRegistry()
        self._mappers: dict[type, EntityMapper[Any]] = {}

    @property
    def registry(self) -> TableRegistry:
        return self._registry

    @property
    def generator(self) -> BetterSqlGenerator:
        return self._generator

    @property
    def support(self) -> BetterSqlSupport:
        return self._support

    def entity_mapper(self, cls: type[T]) -> EntityMapper[T]:
        """Row mapper for *cls*, rebuilt when its registered metadata changes."""
        table = self._registry.resolve(cls)
        mapper = self._mappers.get(cls)
        if mapper is None or mapper.table is not table:
            mapper = EntityMapper(cls, table)
            self._mappers[cls] = mapper
        return mapper

    # --- Reads ---

    def find(self, connection: Any, key: Any, cls: type[T]) -> T | None:
        """Entity with primary key *key*, or None."""
        mapper = self.entity_mapper(cls)
        table = mapper.table
        _require_single_key(table, ". try the select builder")
        return self._support.query(
            connection,
            self._generator.select(table),
            mapper.from_row,
            lambda ps: bind_field(ps, 1, table.primary_key, key),
        )

    def find_all(self, connection: Any, keys: Iterable[Any], cls: type[T]) -> list[T]:
        """Entities whose primary key is in *keys*, in database order."""
        mapper = self.entity_mapper(cls)
        table = mapper.table
        _require_single_key(table, ". try the select builder")
        values = list(keys)
        if not values:
            return []
        return self._support.query_list(
            connection,
            self._generator.bulk_select(table),
            mapper.from_row,
            lambda ps: ps.set_array(1, values),
        )

    def select(self, sql: str, cls: type[T]) -> SelectBuilder[T]:
        """Builder mapping the rows of a custom query to *cls*."""
        return SelectBuilder(self, sql, cls)

    # --- Writes ---

    def insert(self, connection: Any, entity: T) -> T:
        """Insert *entity*.

        With primary key values set, they are inserted as given and the same
        entity is returned. Otherwise the database generates them and a copy
        carrying the generated keys is returned.
        """
        mapper = self.entity_mapper(type(entity))
        table = mapper.table
        key_values = mapper.key_values(entity)
        sql = self._generator.insert(table, include_primary_key=bool(key_values))

        def binding(ps: StatementHandle) -> None:
            position = 1
            for field, value in key_values:
                bind_field(ps, position, field, value)
                position += 1
            mapper.bind(ps, entity, table.columns, position)

        if key_values:
            self._support.update(connection, sql, binding)
            return entity

        generated = self._support.insert_mapped(
            connection, sql, lambda row: self._generated_keys(row, table), binding
        )
        if not generated:
            return entity
        return mapper.with_values(entity, generated)

    @staticmethod
    def _generated_keys(row: ResultRow, table: TableData) -> dict[str, Any]:
        if not table.has_composite_key and not row.has_column(table.primary_key.column_name):
            # drivers that only report the row id
            return {table.primary_key.name: row.get_object(1)}
        return {field.name: read_field(row, field) for field in table.primary_keys}

    def update(self, connection: Any, entity: Any) -> None:
        """Update the row of *entity*.

        Raises:
            NullPrimaryKeyError: The entity has no primary key values.
            RowCountError: Other than exactly one row was updated.
        """
        mapper = self.entity_mapper(type(entity))
        table = mapper.table
        key_values = mapper.key_values(entity)
        if not key_values:
            raise NullPrimaryKeyError("primary key(s) cannot be None")

        def binding(ps: StatementHandle) -> None:
            position = mapper.bind(ps, entity, table.columns)
            for field, value in key_values:
                bind_field(ps, position, field, value)
                position += 1

        count = self._support.update(connection, self._generator.update(table), binding)
        if count != 1:
            raise RowCountError(count, "updated", table.table_name, _describe_keys(key_values))

    def delete(self, connection: Any, entity: Any) -> None:
        """Delete the row of *entity*.

        Raises:
            NullPrimaryKeyError: The entity has no primary key values.
            RowCountError: Other than exactly one row was deleted.
        """
        mapper = self.entity_mapper(type(entity))
        table = mapper.table
        key_values = mapper.key_values(entity)
        if not key_values:
            raise NullPrimaryKeyError("primary key(s) cannot be None")

        def binding(ps: StatementHandle) -> None:
            for position, (field, value) in enumerate(key_values, start=1):
                bind_field(ps, position, field, value)

        count = self._support.update(connection, self._generator.delete(table), binding)
        if count != 1:
            raise RowCountError(count, "deleted", table.table_name, _describe_keys(key_values))

    def delete_by_key(self, connection: Any, key: Any, cls: type) -> int:
        """Delete by primary key; returns the deleted row count."""
        table = self._registry.resolve(cls)
        _require_single_key(table)
        return self._support.update(
            connection,
            self._generator.delete(table),
            lambda ps: bind_field(ps, 1, table.primary_key, key),
        )

    def delete_all(self, connection: Any, keys: Iterable[Any], cls: type) -> int:
        """Delete every row whose primary key is in *keys*; returns the count."""
        table = self._registry.resolve(cls)
        _require_single_key(table)
        values = list(keys)
        if not values:
            return 0
        return self._support.update(
            connection,
            self._generator.bulk_delete(table),
            lambda ps: ps.set_array(1, values),
        )


@dataclass(frozen=True)
class SelectBuilder(Generic[T]):
    """Runs a custom query and maps rows to an entity class by column name."""

    mapper: BetterSqlMapper
    sql: str
    cls: type[T]
    binding: StatementBinding | None = None

    def bind(self, binding: StatementBinding) -> SelectBuilder[T]:
        return dataclasses.replace(self, binding=binding)

    def one(self, connection: Any) -> T | None:
        """First row, or None."""
        entity_mapper = self.mapper.entity_mapper(self.cls)
        return self.mapper.support.query(connection, self.sql, entity_mapper.from_row, self.binding)

    def map(self, connection: Any, key_mapping: ResultMapping[K]) -> dict[K, T]:
        """All rows keyed by *key_mapping*."""
        entity_mapper = self.mapper.entity_mapper(self.cls)
        return self.mapper.support.query_map(
            connection, self.sql, entity_mapper.from_row, key_mapping, self.binding
        )

    def list(self, connection: Any) -> list[T]:
        """All rows."""
        entity_mapper = self.mapper.entity_mapper(self.cls)
        return self.mapper.support.query_list(
            connection, self.sql, entity_mapper.from_row, self.binding
        )
