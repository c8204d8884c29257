"""SQL template generation from table metadata.

Every statement comes in a positional (`?`) and a named (`:column`) form.
Bulk statements bind all keys as one array parameter: a native array
unnested by the database under Option.ARRAY_SUPPORT, otherwise an IN list
expanded at execution.
"""

from __future__ import annotations

from better_sql.core.exceptions import CompositeKeyError
from better_sql.core.options import BetterOptions
from better_sql.core.types import ddl_type_of
from better_sql.mapping.table import FieldDescriptor, TableData


def _names(fields: tuple[FieldDescriptor, ...]) -> list[str]:
    return [field.column_name for field in fields]


def _equal_params(fields: tuple[FieldDescriptor, ...], named: bool) -> list[str]:
    return [f"{name} = {':' + name if named else '?'}" for name in _names(fields)]


class BetterSqlGenerator:
    """Generates SELECT, INSERT, UPDATE, DELETE and CREATE TABLE templates."""

    def __init__(self, options: BetterOptions | None = None) -> None:
        self._options = options if options is not None else BetterOptions.defaults()

    @property
    def options(self) -> BetterOptions:
        return self._options

    # --- SELECT ---

    def select(self, table: TableData) -> str:
        return self._select(table, named=False)

    def select_named(self, table: TableData) -> str:
        return self._select(table, named=True)

    def _select(self, table: TableData, named: bool) -> str:
        columns = ", ".join(_names(table.fields))
        conditions = " AND ".join(_equal_params(table.primary_keys, named))
        return f"SELECT {columns} FROM {table.table_name} WHERE {conditions}"

    def bulk_select(self, table: TableData) -> str:
        return self._bulk_select(table, named=False)

    def bulk_select_named(self, table: TableData) -> str:
        return self._bulk_select(table, named=True)

    def _bulk_select(self, table: TableData, named: bool) -> str:
        pk = self._single_key(table, "bulk select")
        columns = ", ".join(_names(table.fields))
        return f"SELECT {columns} FROM {table.table_name} WHERE {self._in_keys(pk, named)}"

    # --- INSERT ---

    def insert(self, table: TableData, include_primary_key: bool = False) -> str:
        return self._insert(table, include_primary_key, named=False)

    def insert_named(self, table: TableData, include_primary_key: bool = False) -> str:
        return self._insert(table, include_primary_key, named=True)

    def _insert(self, table: TableData, include_primary_key: bool, named: bool) -> str:
        fields = table.fields if include_primary_key else table.columns
        names = _names(fields)
        values = [":" + name for name in names] if named else ["?"] * len(names)
        return (
            f"INSERT INTO {table.table_name} ({', '.join(names)}) "
            f"VALUES ({', '.join(values)})"
        )

    # --- UPDATE ---

    def update(self, table: TableData) -> str:
        return self._update(table, named=False)

    def update_named(self, table: TableData) -> str:
        return self._update(table, named=True)

    def _update(self, table: TableData, named: bool) -> str:
        assignments = ", ".join(_equal_params(table.columns, named))
        conditions = " AND ".join(_equal_params(table.primary_keys, named))
        return f"UPDATE {table.table_name} SET {assignments} WHERE {conditions}"

    # --- DELETE ---

    def delete(self, table: TableData) -> str:
        return self._delete(table, named=False)

    def delete_named(self, table: TableData) -> str:
        return self._delete(table, named=True)

    def _delete(self, table: TableData, named: bool) -> str:
        conditions = " AND ".join(_equal_params(table.primary_keys, named))
        return f"DELETE FROM {table.table_name} WHERE {conditions}"

    def bulk_delete(self, table: TableData) -> str:
        return self._bulk_delete(table, named=False)

    def bulk_delete_named(self, table: TableData) -> str:
        return self._bulk_delete(table, named=True)

    def _bulk_delete(self, table: TableData, named: bool) -> str:
        pk = self._single_key(table, "bulk delete")
        return f"DELETE FROM {table.table_name} WHERE {self._in_keys(pk, named)}"

    # --- DDL ---

    def create_table(self, table: TableData) -> str:
        """CREATE TABLE with one column per field.

        Fields without a value kind are declared TEXT.
        """
        definitions: list[str] = []
        single_key = not table.has_composite_key
        for field in table.primary_keys:
            definition = f"{field.column_name} {self._ddl_type(field)}"
            suffix = "PRIMARY KEY" if single_key else "NOT NULL"
            definitions.append(f"{definition} {suffix}")
        for field in table.columns:
            definition = f"{field.column_name} {self._ddl_type(field)}"
            definitions.append(definition if field.nullable else f"{definition} NOT NULL")
        if not single_key:
            definitions.append(f"PRIMARY KEY ({', '.join(_names(table.primary_keys))})")
        return f"CREATE TABLE {table.table_name} ({', '.join(definitions)})"

    # --- Helpers ---

    @staticmethod
    def _ddl_type(field: FieldDescriptor) -> str:
        return "TEXT" if field.kind is None else ddl_type_of(field.kind)

    @staticmethod
    def _single_key(table: TableData, operation: str) -> FieldDescriptor:
        if table.has_composite_key:
            raise CompositeKeyError(f"{operation} sql generation not supported for composite keys")
        return table.primary_keys[0]

    def _in_keys(self, pk: FieldDescriptor, named: bool) -> str:
        value = ":" + pk.column_name if named else "?"
        if self._options.array_support:
            return f"{pk.column_name} IN (SELECT unnest({value}))"
        return f"{pk.column_name} IN ({value})"
