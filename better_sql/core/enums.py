"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum, IntEnum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class Option(Enum):
    """Capability options. Only array support exists today."""

    ARRAY_SUPPORT = "array_support"


class Isolation(Enum):
    """Transaction isolation levels."""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class SqlType(IntEnum):
    """SQL type codes recorded with each bound parameter."""

    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    NULL = 0
    OTHER = 1111
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    BOOLEAN = 16


class FetchDirection(IntEnum):
    """Fetch direction hints."""

    FORWARD = 1000
    REVERSE = 1001
    UNKNOWN = 1002
