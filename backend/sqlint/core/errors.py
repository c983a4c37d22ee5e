"""
Exception hierarchy for SQLInterface.

Driver adapters raise ``DriverError``; the executor records it in the query log
and re-raises one of the ``DatabaseError`` subclasses when ``throw_errors`` is set.
"""

from __future__ import annotations

from typing import Any, NamedTuple


class LastError(NamedTuple):
    """Error reported by the connection for the last failed operation."""

    code: int
    message: str


class SQLInterfaceError(Exception):
    """Base class of every error raised by sqlint."""

    pass


class MissingDriverError(SQLInterfaceError):
    """Raised when the connection lacks a capability the interface relies on."""

    def __init__(self, missing: list[str] | None = None) -> None:
        self.missing = list(missing or [])
        message = "SQLInterface requires a MySQL driver connection to work!"
        if self.missing:
            message += f" Missing: {', '.join(self.missing)}."
        super().__init__(message)


class NoConnectionError(SQLInterfaceError):
    """Raised when an operation needs a live connection but there is none."""

    def __init__(self, message: str = "An active database connection is required to send a query.") -> None:
        super().__init__(message)


class ConnectError(SQLInterfaceError):
    """Raised when a connection to the database server can't be established."""

    pass


class UnmatchedDelimiterError(SQLInterfaceError, ValueError):
    """Raised when an opening or closing token has no counterpart."""

    def __init__(self, delimiter: str, index: int) -> None:
        self.delimiter = delimiter
        self.index = index
        super().__init__(f"Unmatched '{delimiter}' was found at index {index}.")


class NotFoundError(SQLInterfaceError, KeyError):
    """Raised when a saved query or loaded file is referenced by an unknown name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DriverError(SQLInterfaceError):
    """Failure reported by the driver adapter (code + message)."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"({code}) {message}")

    @property
    def last_error(self) -> LastError:
        return LastError(self.code, self.message)


class DatabaseError(SQLInterfaceError):
    """
    Base for failures that carry the connection's last error.

    The message is built from the class default and the error's message, e.g.
    ``Statement preparation failed: You have an error in your SQL syntax``.
    """

    default_message = "Connection error!"

    def __init__(self, error: LastError | None = None, *, query: str | None = None) -> None:
        self.code: int = error.code if error else 0
        self.error = error
        self.query = query
        message = self.default_message
        if error is not None:
            message = f"{message[:-1]}: {error.message}"
        super().__init__(message)

    @classmethod
    def from_driver(cls, exc: DriverError, **kwargs: Any) -> DatabaseError:
        return cls(exc.last_error, **kwargs)


class StatementPreparationError(DatabaseError):
    default_message = "Statement preparation failed!"


class StatementExecutionError(DatabaseError):
    default_message = "Statement execution failed!"


class QueryExecutionError(DatabaseError):
    default_message = "Query execution failed!"


class ConnectionTeardownError(DatabaseError):
    default_message = "The connection couldn't be closed!"
