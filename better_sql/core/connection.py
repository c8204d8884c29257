"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager opens plain connections through the driver's adapter;
callers own the connections it hands out.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from better_sql.core.enums import DatabaseBackend
from better_sql.core.exceptions import AdapterError


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    extra: dict[str, Any] = {}


# Adapter module mapping: backend → (module_path, adapter_class)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("better_sql.adapters.sqlite", "SqliteAdapter"),
    DatabaseBackend.POSTGRESQL: ("better_sql.adapters.postgresql", "PostgresqlAdapter"),
    DatabaseBackend.MYSQL: ("better_sql.adapters.mysql", "MysqlAdapter"),
}

# DB-API module prefix of a connection class → backend
_DRIVER_MODULES: dict[str, DatabaseBackend] = {
    "sqlite3": DatabaseBackend.SQLITE,
    "psycopg": DatabaseBackend.POSTGRESQL,
    "mysql.connector": DatabaseBackend.MYSQL,
}

_adapter_cache: dict[DatabaseBackend, Any] = {}


def load_adapter(driver: str | DatabaseBackend) -> Any:
    """Load an adapter by driver name."""
    try:
        backend = DatabaseBackend(driver.lower() if isinstance(driver, str) else driver)
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None

    if backend not in _adapter_cache:
        module_path, cls_name = _ADAPTER_MAP[backend]
        try:
            module = importlib.import_module(module_path)
            _adapter_cache[backend] = getattr(module, cls_name)()
        except (ImportError, AttributeError) as e:
            raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e
    return _adapter_cache[backend]


def resolve_adapter(connection: Any) -> Any:
    """Find the adapter for a raw DB-API connection by its driver module."""
    module = type(connection).__module__
    for prefix, backend in _DRIVER_MODULES.items():
        if module == prefix or module.startswith(prefix + "."):
            return load_adapter(backend)
    raise AdapterError(
        f"Cannot determine database driver for connection type "
        f"{module}.{type(connection).__qualname__}; pass an adapter explicitly"
    )


class ConnectionManager:
    """Opens connections described by a ConnectionConfig."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._adapter = load_adapter(config.driver)

    @property
    def adapter(self) -> Any:
        return self._adapter

    def connect(self) -> Any:
        """Open a new connection. Close it yourself."""
        return self._adapter.connect(self.config)

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Open a connection as a context manager, closing it on exit."""
        connection = self.connect()
        try:
            yield connection
        finally:
            connection.close()
