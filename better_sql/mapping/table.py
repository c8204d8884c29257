"""Table metadata discovered from entity classes.

Entities are dataclasses or Pydantic models. Field metadata is read from
``dataclasses.field(metadata=...)`` or ``pydantic.Field(json_schema_extra=...)``:

    primary_key   part of the primary key
    column        column name (default: the snake_cased field name)
    kind          ValueKind used to bind and read the field
    transient     not persisted

``key()``, ``column()`` and ``transient()`` build that metadata. The table
name is ``__table__`` (prefixed by ``__schema__``) or the snake_cased class
name.
"""

from __future__ import annotations

import dataclasses
import logging
import typing
from dataclasses import dataclass
from typing import Any

from better_sql.core.exceptions import CompositeKeyError, MappingError, MissingPrimaryKeyError
from better_sql.core.types import ValueKind, kind_of_type, unwrap_optional

logger = logging.getLogger(__name__)

PRIMARY_KEY = "primary_key"
COLUMN = "column"
KIND = "kind"
TRANSIENT = "transient"


def key(*, column: str | None = None, kind: ValueKind | None = None) -> dict[str, Any]:
    """Metadata marking a primary key field."""
    metadata: dict[str, Any] = {PRIMARY_KEY: True}
    if column is not None:
        metadata[COLUMN] = column
    if kind is not None:
        metadata[KIND] = kind
    return metadata


def column(name: str | None = None, *, kind: ValueKind | None = None) -> dict[str, Any]:
    """Metadata overriding a field's column name or value kind."""
    metadata: dict[str, Any] = {}
    if name is not None:
        metadata[COLUMN] = name
    if kind is not None:
        metadata[KIND] = kind
    return metadata


def transient() -> dict[str, Any]:
    """Metadata excluding a field from persistence."""
    return {TRANSIENT: True}


def camel_to_snake(name: str) -> str:
    """``CompositeKeyBean`` -> ``composite_key_bean``; snake_case is unchanged."""
    out: list[str] = []
    prev_lower = False
    for ch in name:
        if ch.isupper():
            if prev_lower:
                out.append("_")
            out.append(ch.lower())
            prev_lower = False
        else:
            out.append(ch)
            prev_lower = True
    return "".join(out)


@dataclass(frozen=True)
class FieldDescriptor:
    """A persisted field.

    Attributes:
        name: Attribute name on the entity.
        column_name: Column it maps to.
        kind: Value kind, or None to pass values through untyped.
        nullable: The annotation admits None.
    """

    name: str
    column_name: str
    kind: ValueKind | None
    nullable: bool


@dataclass(frozen=True)
class TableData:
    """Table name plus key and non-key columns of an entity class."""

    table_name: str
    primary_keys: tuple[FieldDescriptor, ...]
    columns: tuple[FieldDescriptor, ...]

    @property
    def has_composite_key(self) -> bool:
        return len(self.primary_keys) > 1

    @property
    def primary_key(self) -> FieldDescriptor:
        """The single primary key field."""
        if self.has_composite_key:
            raise CompositeKeyError(f"table {self.table_name} has a composite primary key")
        return self.primary_keys[0]

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        """Primary keys followed by columns."""
        return self.primary_keys + self.columns


def is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    from pydantic import BaseModel

    return isinstance(cls, type) and issubclass(cls, BaseModel)


def table_name_of(cls: type) -> str:
    name = getattr(cls, "__table__", None) or camel_to_snake(cls.__name__)
    schema = getattr(cls, "__schema__", None)
    return f"{schema}.{name}" if schema else name


def _declared_fields(cls: type) -> list[tuple[str, Any, dict[str, Any]]]:
    """``(name, annotation, metadata)`` per declared field, in order."""
    if is_pydantic_model(cls):
        declared = []
        for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            declared.append((name, info.annotation, dict(extra)))
        return declared

    if dataclasses.is_dataclass(cls):
        hints = typing.get_type_hints(cls)
        return [
            (f.name, hints.get(f.name, f.type), dict(f.metadata))
            for f in dataclasses.fields(cls)
        ]

    raise MappingError(f"{cls.__name__} is not a dataclass or Pydantic model")


def inspect_table(cls: type) -> TableData:
    """Build TableData for an entity class.

    Raises:
        MissingPrimaryKeyError: No field is marked as primary key.
    """
    primary_keys: list[FieldDescriptor] = []
    columns: list[FieldDescriptor] = []
    for name, annotation, metadata in _declared_fields(cls):
        if metadata.get(TRANSIENT):
            continue
        _, nullable = unwrap_optional(annotation)
        kind = metadata.get(KIND)
        descriptor = FieldDescriptor(
            name=name,
            column_name=camel_to_snake(metadata.get(COLUMN) or name),
            kind=ValueKind(kind) if kind is not None else kind_of_type(annotation),
            nullable=nullable,
        )
        if metadata.get(PRIMARY_KEY):
            primary_keys.append(descriptor)
        else:
            columns.append(descriptor)

    if not primary_keys:
        raise MissingPrimaryKeyError(cls.__name__)
    return TableData(table_name_of(cls), tuple(primary_keys), tuple(columns))


class TableRegistry:
    """Cache of TableData per entity class.

    Each mapper owns one; pass the same registry to share resolved metadata.
    """

    def __init__(self) -> None:
        self._tables: dict[type, TableData] = {}

    def resolve(self, cls: type) -> TableData:
        """Cached TableData for *cls*, inspecting the class on first use."""
        table = self._tables.get(cls)
        if table is None:
            table = inspect_table(cls)
            self._tables[cls] = table
            logger.debug("Resolved table %s for %s", table.table_name, cls.__name__)
        return table

    def register(self, cls: type, table: TableData | None = None) -> TableData:
        """Register *table* for *cls*, or inspect it now; replaces any cached entry."""
        if table is None:
            table = inspect_table(cls)
        self._tables[cls] = table
        return table

    def has(self, cls: type) -> bool:
        """Check if a class has been resolved or registered."""
        return cls in self._tables

    def clear(self) -> None:
        self._tables.clear()

    def __len__(self) -> int:
        """Number of cached classes."""
        return len(self._tables)
