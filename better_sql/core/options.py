"""Capability and per-statement configuration.

One BetterOptions instance is chosen per support/generator/mapper and never
changes afterwards. Right now the only option is array support, geared
towards PostgreSQL.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from better_sql.core.enums import FetchDirection, Option


class BetterOptions(BaseModel):
    """Immutable set of enabled options."""

    model_config = ConfigDict(frozen=True)

    options: frozenset[Option] = frozenset()

    @classmethod
    def from_options(cls, *options: Option) -> BetterOptions:
        return cls(options=frozenset(options))

    @classmethod
    def defaults(cls) -> BetterOptions:
        """Options with nothing enabled: IN clauses are simulated."""
        return cls()

    def enabled(self, option: Option) -> bool:
        return option in self.options

    @property
    def array_support(self) -> bool:
        return self.enabled(Option.ARRAY_SUPPORT)


class StatementConfig(BaseModel):
    """Per-statement settings. Unset fields leave the driver default alone.

    ``query_timeout`` is in seconds. ``close_on_completion`` closes the
    statement once its last result set is closed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_field_size: int | None = Field(default=None, ge=0)
    max_rows: int | None = Field(default=None, ge=0)
    escape_processing: bool | None = None
    query_timeout: float | None = Field(default=None, ge=0)
    cursor_name: str | None = None
    fetch_direction: FetchDirection | None = None
    fetch_size: int | None = Field(default=None, ge=0)
    poolable: bool | None = None
    close_on_completion: bool = False

    def updated(self, **settings: Any) -> StatementConfig:
        """Copy with *settings* applied and validated."""
        return StatementConfig(**{**self.model_dump(), **settings})

    def changes(self) -> dict[str, Any]:
        """Settings that differ from the defaults."""
        return self.model_dump(exclude_defaults=True)
