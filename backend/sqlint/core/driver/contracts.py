"""Connection and statement capabilities the interface relies on."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, Union

from sqlint.core.errors import LastError

RowSet = list[dict[str, Any]]
# A row set for queries that return rows, ``True``/``False`` for the others.
QueryResult = Union[RowSet, bool]


class StatementPort(Protocol):
    """A prepared statement with positional ``?`` placeholders."""

    def bind(self, types: str, values: Sequence[Any]) -> None: ...

    def execute(self) -> None: ...

    def fetch_result(self) -> QueryResult: ...

    def affected_rows(self) -> int: ...

    def close(self) -> None: ...


class ConnectionPort(Protocol):
    """
    An open database connection.

    Every operation raises ``DriverError`` on failure and remembers it as
    ``last_error()`` until the next operation.
    """

    def is_alive(self) -> bool: ...

    def set_charset(self, name: str) -> None: ...

    def prepare(self, sql: str) -> StatementPort: ...

    def query(self, sql: str) -> QueryResult: ...

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def get_autocommit(self) -> bool: ...

    def autocommit(self, value: bool) -> None: ...

    def insert_id(self) -> int: ...

    def affected_rows(self) -> int: ...

    def last_error(self) -> LastError | None: ...

    def select_db(self, name: str) -> None: ...

    def close(self) -> None: ...


REQUIRED_CAPABILITIES: tuple[str, ...] = (
    "is_alive",
    "set_charset",
    "prepare",
    "query",
    "begin",
    "commit",
    "rollback",
    "get_autocommit",
    "autocommit",
    "insert_id",
    "affected_rows",
    "last_error",
    "select_db",
    "close",
)
