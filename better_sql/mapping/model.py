"""Entity mapper: result rows to entities and entity fields to parameters.

Supports dataclasses and Pydantic models.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, TypeVar

from better_sql.core.exceptions import NullPrimaryKeyError
from better_sql.core.results import ResultRow
from better_sql.core.types import bind_value, read_value
from better_sql.mapping.table import FieldDescriptor, TableData, is_pydantic_model

T = TypeVar("T")


def bind_field(statement: Any, parameter: int | str, field: FieldDescriptor, value: Any) -> None:
    """Bind *value* with the setter for the field's kind."""
    if field.kind is None:
        statement.set_object(parameter, value)
    else:
        bind_value(statement, parameter, field.kind, value)


def read_field(row: ResultRow, field: FieldDescriptor) -> Any:
    """Read the field's column from *row* by name."""
    if field.kind is None:
        return row.get_object(field.column_name)
    return read_value(row, field.column_name, field.kind, field.nullable)


class EntityMapper(Generic[T]):
    """Maps between rows and instances of one entity class.

    Detection order:
    1. Pydantic BaseModel -> model_validate(values)
    2. dataclass -> entity_class(**values)

    Args:
        entity_class: The entity class.
        table: Its resolved table metadata.
    """

    def __init__(self, entity_class: type[T], table: TableData) -> None:
        self._entity_class = entity_class
        self._table = table
        self._is_pydantic = is_pydantic_model(entity_class)

    @property
    def table(self) -> TableData:
        return self._table

    def from_row(self, row: ResultRow) -> T:
        """Build an entity from the row's columns."""
        values = {field.name: read_field(row, field) for field in self._table.fields}
        if self._is_pydantic:
            return self._entity_class.model_validate(values)  # type: ignore[attr-defined]
        return self._entity_class(**values)

    def bind(
        self,
        statement: Any,
        entity: Any,
        fields: tuple[FieldDescriptor, ...],
        start: int = 1,
    ) -> int:
        """Bind *fields* of *entity* at consecutive positions.

        Returns:
            The position after the last one bound.
        """
        position = start
        for field in fields:
            bind_field(statement, position, field, getattr(entity, field.name))
            position += 1
        return position

    def key_values(self, entity: Any) -> list[tuple[FieldDescriptor, Any]]:
        """Primary key fields with their values; empty when the keys are unset.

        Raises:
            NullPrimaryKeyError: Only some parts of a composite key are set.
        """
        values = [
            (field, getattr(entity, field.name))
            for field in self._table.primary_keys
            if getattr(entity, field.name) is not None
        ]
        if values and len(values) != len(self._table.primary_keys):
            raise NullPrimaryKeyError("composite keys must either be all None or all set")
        return values

    def with_values(self, entity: T, values: dict[str, Any]) -> T:
        """Copy of *entity* with the given attributes replaced."""
        if self._is_pydantic:
            return entity.model_copy(update=values)  # type: ignore[attr-defined, no-any-return]
        return dataclasses.replace(entity, **values)  # type: ignore[type-var]
