"""better-sql - prepared statements with :named parameters and IN-list expansion."""

from __future__ import annotations

from better_sql.core.connection import ConnectionConfig, ConnectionManager
from better_sql.core.delayed import DelayedBindingProxy
from better_sql.core.dispatch import create_statement
from better_sql.core.enums import DatabaseBackend, FetchDirection, Isolation, Option, SqlType
from better_sql.core.exceptions import (
    AdapterError,
    ArrayReexpansionError,
    BetterSqlError,
    BindingError,
    CompositeKeyError,
    ConnectionError,  # noqa: A004
    InvalidParameterIndexError,
    MappingError,
    MissingPrimaryKeyError,
    NoNamedParametersError,
    NotYetPreparedError,
    NullPrimaryKeyError,
    ParameterBindingMismatchError,
    ResultMappingError,
    RowCountError,
    SimulatedArrayUnsupportedError,
    StatementClosedError,
    StatementStateError,
    TemplateError,
    TransactionError,
    TransactionStateError,
    UnknownNamedParameterError,
    UnmappableArrayTypeError,
)
from better_sql.core.options import BetterOptions, StatementConfig
from better_sql.core.params import NamedParameters, detect_in_clause, parse_named_parameters
from better_sql.core.results import ResultRow, ResultSet
from better_sql.core.statement import BetterPreparedStatement, PreparedStatement, StatementHandle
from better_sql.core.support import BetterSqlSupport, QueryBuilder
from better_sql.core.transaction import BetterSqlTransaction, run_in_transaction
from better_sql.core.types import ValueKind
from better_sql.mapping.generator import BetterSqlGenerator
from better_sql.mapping.table import TableData, TableRegistry, column, key, transient
from better_sql.repository.mapper import BetterSqlMapper

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Statements
    "StatementHandle",
    "PreparedStatement",
    "BetterPreparedStatement",
    "DelayedBindingProxy",
    "create_statement",
    "NamedParameters",
    "parse_named_parameters",
    "detect_in_clause",
    # Results
    "ResultRow",
    "ResultSet",
    # Support
    "BetterSqlSupport",
    "QueryBuilder",
    # Transaction
    "BetterSqlTransaction",
    "run_in_transaction",
    # Mapping
    "BetterSqlGenerator",
    "BetterSqlMapper",
    "TableData",
    "TableRegistry",
    "key",
    "column",
    "transient",
    "ValueKind",
    # Options and enums
    "BetterOptions",
    "StatementConfig",
    "Option",
    "Isolation",
    "SqlType",
    "FetchDirection",
    "DatabaseBackend",
    # Exceptions
    "BetterSqlError",
    "TemplateError",
    "NoNamedParametersError",
    "UnknownNamedParameterError",
    "BindingError",
    "ParameterBindingMismatchError",
    "InvalidParameterIndexError",
    "UnmappableArrayTypeError",
    "ArrayReexpansionError",
    "StatementStateError",
    "SimulatedArrayUnsupportedError",
    "NotYetPreparedError",
    "StatementClosedError",
    "MappingError",
    "MissingPrimaryKeyError",
    "CompositeKeyError",
    "NullPrimaryKeyError",
    "RowCountError",
    "ResultMappingError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
]
