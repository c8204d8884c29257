"""better-sql exception hierarchy.

Driver exceptions are never wrapped: callers inspect native error codes on
whatever the DB-API module raised. Everything the library itself detects
derives from BetterSqlError.
"""

from __future__ import annotations


class BetterSqlError(Exception):
    """Base exception for all better-sql errors."""


# --- Templates ---


class TemplateError(BetterSqlError):
    """Base for SQL template errors."""


class NoNamedParametersError(TemplateError):
    """Raised when a named setter is used on a statement without :named parameters."""

    def __init__(self) -> None:
        super().__init__("no named parameters found in statement")


class UnknownNamedParameterError(TemplateError):
    """Raised when a named setter references a name absent from the statement."""

    def __init__(self, name: str, sql: str) -> None:
        self.name = name
        self.sql = sql
        super().__init__(f"no named parameter '{name}' found in statement: {sql}")


# --- Binding ---


class BindingError(BetterSqlError):
    """Base for parameter binding errors."""


class ParameterBindingMismatchError(BindingError):
    """Raised when the bound parameters do not line up with the placeholders."""

    def __init__(self, expected: int, bound: list[int]) -> None:
        self.expected = expected
        self.bound = bound
        super().__init__(
            f"problem matching parameter markers to number of parameters: "
            f"{expected} placeholder(s), bound positions {bound}"
        )


class InvalidParameterIndexError(BindingError):
    """Raised when a positional setter targets a position outside the statement."""

    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"parameter index {index} out of range (1..{count})")


class UnmappableArrayTypeError(BindingError):
    """Raised when a native array cannot be built from the given elements."""


class ArrayReexpansionError(BindingError):
    """Raised when an expanded array placeholder is rebound with a different size."""

    def __init__(self, index: int, expanded: int, requested: int) -> None:
        self.index = index
        super().__init__(
            f"parameter {index} was expanded to {expanded} placeholder(s); "
            f"cannot rebind with {requested} element(s)"
        )


# --- Statement state ---


class StatementStateError(BetterSqlError):
    """Base for operations that are illegal in the statement's current state."""


class SimulatedArrayUnsupportedError(StatementStateError):
    """Raised when SQL array construction is attempted on a simulated IN statement."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot use SQL Array with DelayedBindingProxy. Try Option.ARRAY_SUPPORT."
        )


class NotYetPreparedError(StatementStateError):
    """Raised when a delegate-only operation is called before execution."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"DelayedBindingProxy limitation. Execute statement to call {operation}."
        )


class StatementClosedError(StatementStateError):
    """Raised when a closed statement is used."""

    def __init__(self) -> None:
        super().__init__("statement is closed")


# --- Mapping ---


class MappingError(BetterSqlError):
    """Base for entity mapping errors."""


class MissingPrimaryKeyError(MappingError):
    """Raised when an entity class declares no primary key field."""

    def __init__(self, class_name: str) -> None:
        self.class_name = class_name
        super().__init__(f"primary key field(s) not found on class {class_name}")


class CompositeKeyError(MappingError):
    """Raised when an operation does not support composite primary keys."""


class NullPrimaryKeyError(MappingError):
    """Raised when primary key values are missing where they are required."""


class RowCountError(MappingError):
    """Raised when an update or delete touches other than exactly one row."""

    def __init__(self, count: int, action: str, table: str, keys: str) -> None:
        self.count = count
        super().__init__(
            f"{count} rows {action}. 1 row expected. [table {table}] primary key(s) {keys}"
        )


class ResultMappingError(MappingError):
    """Raised when a result mapping callback fails."""


# --- Transaction ---


class TransactionError(BetterSqlError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(BetterSqlError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""
