"""
SQLInterface: one database session.

A session owns its connection, query log, loaded SQL files and saved queries.
Settings and credentials set on a session are overrides; anything not set
falls back to the process-wide values from ``sqlint.configure`` and
``sqlint.set_credentials``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any, NamedTuple, TypeVar

from sqlint.core.credentials import Credentials, credential_values, merge_credentials
from sqlint.core.credentials import get_credentials as get_default_credentials
from sqlint.core.driver import ConnectionPort, connect, health_check, require_capabilities
from sqlint.core.errors import (
    ConnectionTeardownError,
    DriverError,
    LastError,
    NoConnectionError,
    NotFoundError,
    QueryExecutionError,
)
from sqlint.core.query_log import QueryLogEntry
from sqlint.core.settings import (
    QuerySettings,
    get_default_query_settings,
    normalize_settings,
    recognized_overrides,
)
from sqlint.engines.bulk import (
    build_insert_sql,
    build_load_sql,
    loaded_id_range,
    normalize_rows,
    remove_staging_file,
    use_insert,
    write_staging_file,
)
from sqlint.engines.sql import QueryExecutor, quote_identifier, secure_sql_value, split_statements, trim
from sqlint.engines.transaction import TransactionContext, TransactionCoordinator

_log = logging.getLogger(__name__)

T = TypeVar("T")

# Settings forced on the statements the session issues for itself
_INTERNAL = {"throwErrors": True}


class SavedQuery(NamedTuple):
    query: str
    settings: QuerySettings


class SQLInterface:
    """
    Session facade over the query executor and the transaction coordinator.

    Usage::

        with SQLInterface({"host": "db", "username": "app"}) as db:
            db.query("SELECT * FROM `users` WHERE `id` = <%7%>")
            ids = db.bulk_insert([("a", 1), ("b", 2)], "items", ["name", "qty"])
    """

    def __init__(
        self,
        credentials: Mapping[str, Any] | None = None,
        *,
        connector: Callable[[Credentials], ConnectionPort] | None = None,
    ) -> None:
        self._credentials: dict[str, Any] = credential_values(credentials) if credentials else {}
        self._settings: dict[str, Any] = {}
        self._connector = connector or connect
        self._connection: ConnectionPort | None = None
        self._executor = QueryExecutor()
        self._transactions = TransactionCoordinator(
            connect=self._ensure_connection,
            execute=lambda sql: self.query(sql, _INTERNAL),
        )
        self._files: dict[str, list[str]] = {}
        self._saved_queries: dict[str, SavedQuery] = {}

    def __enter__(self) -> SQLInterface:
        return self.connect()

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def connection(self) -> ConnectionPort | None:
        return self._connection

    def connect(self) -> SQLInterface:
        """Open a connection unless a live one exists."""
        if self.is_connected():
            return self
        credentials = self.get_credentials()
        conn = require_capabilities(self._connector(credentials))
        self._connection = conn
        _log.info("Connected to %s (database %s)", credentials.host or "localhost", credentials.database)
        return self

    def disconnect(self) -> SQLInterface:
        conn = self._connection
        if conn is None:
            return self
        if not health_check(conn):
            self._connection = None
            return self
        try:
            conn.close()
        except DriverError as e:
            raise ConnectionTeardownError.from_driver(e) from e
        self._connection = None
        _log.info("Disconnected")
        return self

    def is_connected(self) -> bool:
        return health_check(self._connection)

    def _ensure_connection(self) -> ConnectionPort:
        self.connect()
        assert self._connection is not None
        return self._connection

    # ------------------------------------------------------------------
    # Settings and credentials
    # ------------------------------------------------------------------

    @property
    def query_settings(self) -> QuerySettings:
        """Session settings: own overrides on top of the process-wide defaults."""
        return normalize_settings(self._settings, get_default_query_settings())

    def configure(self, overrides: Mapping[str, Any]) -> SQLInterface:
        updated = {**self._settings, **recognized_overrides(overrides)}
        # validate before storing
        normalize_settings(updated, get_default_query_settings())
        self._settings = updated
        return self

    def get_credentials(self) -> Credentials:
        return merge_credentials(self._credentials, get_default_credentials())

    def set_credentials(
        self,
        host: Mapping[str, Any] | str | None = None,
        username: str | None = None,
        password: str | None = None,
        database: str | None = None,
        port: int | None = None,
        socket: str | None = None,
    ) -> SQLInterface:
        """Override credentials for this session; takes effect on the next connect."""
        values = credential_values(host, username, password, database, port, socket)
        updated = {**self._credentials, **values}
        merge_credentials(updated, get_default_credentials())
        self._credentials = updated
        return self

    def set_database(self, database: str) -> SQLInterface:
        """Set the database credential and select it on the live connection."""
        self._credentials["database"] = database
        if not self.is_connected():
            raise NoConnectionError()
        assert self._connection is not None
        try:
            self._connection.select_db(database)
        except DriverError as e:
            raise QueryExecutionError.from_driver(e) from e
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, sql: str, settings: Mapping[str, Any] | QuerySettings | None = None) -> Any:
        """
        Run *sql* and return its shaped result.

        Values between the delimiter tokens (``<%`` and ``%>`` by default) are
        bound as parameters; *settings* override the session settings for
        this call only.
        """
        effective = normalize_settings(settings, self.query_settings)
        return self._executor.run(
            self._connection,
            sql,
            effective,
            database=self.get_credentials().database,
        )

    def secure_sql_value(self, value: Any) -> str:
        return secure_sql_value(value, self.query_settings)

    @property
    def result(self) -> Any:
        return self._executor.result

    @property
    def last_error(self) -> LastError | None:
        return self._executor.last_error

    @property
    def last_insert_id(self) -> int:
        return self._executor.last_insert_id

    @property
    def last_insert_ids(self) -> list[int]:
        return list(self._executor.last_insert_ids)

    @property
    def query_log(self) -> list[QueryLogEntry]:
        return self._executor.log.entries

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._transactions.in_transaction

    def transaction(self, *, throws: bool = True) -> AbstractContextManager[TransactionContext]:
        """Context manager form of ``transact``; nested use opens a savepoint."""
        return self._transactions.transaction(throws=throws)

    def transact(
        self,
        operation: Callable[[TransactionContext], T],
        *,
        throws: bool = True,
    ) -> T | None:
        """Run *operation* in a transaction and return its result."""
        return self._transactions.transact(operation, throws=throws)

    # ------------------------------------------------------------------
    # Bulk insert
    # ------------------------------------------------------------------

    def bulk_insert(
        self,
        rows: Iterable[Mapping[str, Any] | Sequence[Any]],
        table: str,
        fields: Sequence[str] = (),
    ) -> list[int]:
        """
        Insert *rows* into *table* and return the generated ids.

        Up to ``max_rows_using_insert`` rows go into a single multi-row INSERT
        (a negative limit means always). Larger batches are staged to a CSV
        file in ``temp_dir`` and loaded with LOAD DATA LOCAL INFILE inside a
        transaction; their ids are derived from ``MAX(id)`` afterwards.
        """
        values, columns = normalize_rows(rows, fields)
        if not values:
            return []
        settings = self.query_settings

        if use_insert(len(values), settings):
            self.connect()
            index = len(self._executor.log)
            self.query(build_insert_sql(table, values, columns, settings))
            return list(self._executor.log[index].last_insert_ids or ())

        path = write_staging_file(values, settings.temp_dir)
        try:
            outcome = self.transact(lambda tx: self._load_staged(path, table, columns, settings))
        finally:
            remove_staging_file(path)
        assert outcome is not None
        load_index, last_id = outcome

        ids = loaded_id_range(last_id, len(values))
        self._executor.last_insert_id = last_id
        self._executor.last_insert_ids = ids
        self._executor.log.patch(load_index, last_insert_id=last_id, last_insert_ids=tuple(ids))
        return ids

    def _load_staged(
        self,
        path: str,
        table: str,
        fields: Sequence[str],
        settings: QuerySettings,
    ) -> tuple[int, int]:
        load_index = len(self._executor.log)
        self.query(build_load_sql(path, table, fields, settings.charset), _INTERNAL)
        max_index = len(self._executor.log)
        last_id = self.query(
            f"SELECT MAX(`id`) FROM {quote_identifier(table)}",
            {**_INTERNAL, "omitSingleKey": True, "rowsIndexed": False},
        )
        self._executor.log.discard(max_index)
        return load_index, int(last_id or 0)

    # ------------------------------------------------------------------
    # SQL files
    # ------------------------------------------------------------------

    @property
    def files(self) -> dict[str, list[str]]:
        return {name: list(stmts) for name, stmts in self._files.items()}

    def load_file(self, path: str, name: str = "file") -> SQLInterface:
        """Read an SQL file and keep its statements under *name*."""
        try:
            with open(path, encoding="utf-8") as fh:
                content = fh.read()
        except OSError as e:
            raise NotFoundError(f"The file at {path!r} doesn't exist or is inaccessible.") from e
        tokens = self.query_settings.tokens
        self._files[name] = split_statements(trim(content, tokens), tokens)
        _log.debug("Loaded %d statements from %s as %r", len(self._files[name]), path, name)
        return self

    def execute_file(self, name: str = "file") -> list[Any]:
        """Run every statement of a loaded file in one transaction."""
        statements = self._files.get(name)
        if statements is None:
            raise NotFoundError(f"No loaded file was found under '{name}'.")
        results = self.transact(lambda tx: [self.query(stmt) for stmt in statements])
        return results if results is not None else []

    def delete_file(self, name: str = "file") -> SQLInterface:
        if name not in self._files:
            raise NotFoundError(f"No file is saved under '{name}'.")
        del self._files[name]
        return self

    # ------------------------------------------------------------------
    # Saved queries
    # ------------------------------------------------------------------

    @property
    def saved_queries(self) -> dict[str, SavedQuery]:
        return dict(self._saved_queries)

    def save_query(
        self,
        name: str,
        sql: str,
        settings: Mapping[str, Any] | None = None,
    ) -> SQLInterface:
        """Store *sql* under *name*; *settings* are resolved against the session settings now."""
        self._saved_queries[name] = SavedQuery(sql, normalize_settings(settings, self.query_settings))
        return self

    def run_query(self, name: str) -> Any:
        saved = self._saved_queries.get(name)
        if saved is None:
            raise NotFoundError(f"No query is saved under '{name}'.")
        return self.query(saved.query, saved.settings)

    def delete_query(self, name: str) -> SQLInterface:
        if name not in self._saved_queries:
            raise NotFoundError(f"No query is saved under '{name}'.")
        del self._saved_queries[name]
        return self
