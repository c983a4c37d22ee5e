"""
Execute SQL templates against a connection.

Pipeline for every query:

1. ``trim`` comments and whitespace (quoted spans and embedded values untouched)
2. ``extract`` values between the delimiter tokens, leaving ``?`` placeholders
3. ``type_values`` -> typed parameters; empty/NULL values spliced as literals
4. no parameters: run the text directly; otherwise prepare, bind and execute
5. shape the result according to the query settings

Every query gets a ``QueryLogEntry`` before it reaches the driver, so failures
are always recorded. They are raised only when ``throw_errors`` is set.
"""

import logging
from collections.abc import Sequence
from typing import Any

from sqlint.core.config import settings as env_settings
from sqlint.core.driver import ConnectionPort, QueryResult, RowSet, health_check
from sqlint.core.errors import (
    DatabaseError,
    DriverError,
    LastError,
    NoConnectionError,
    QueryExecutionError,
    StatementExecutionError,
    StatementPreparationError,
)
from sqlint.core.param_type import TypedParameter, type_string, type_values
from sqlint.core.query_log import QueryLog, QueryLogEntry
from sqlint.core.settings import QuerySettings
from sqlint.engines.sql.extractor import extract
from sqlint.engines.sql.parser import trim

_log = logging.getLogger(__name__)

PLACEHOLDER = "?"


def shape_rows(rows: RowSet, settings: QuerySettings) -> Any:
    """
    Shape a row set.

    - no rows: ``[]`` if ``no_rows_as_array`` else ``False``
    - single-column rows collapse to their value when ``omit_single_key`` is set
    - exactly one row is returned bare unless ``rows_indexed`` is set
    """
    if not rows:
        return [] if settings.no_rows_as_array else False
    shaped = [
        next(iter(row.values())) if settings.omit_single_key and len(row) == 1 else row
        for row in rows
    ]
    if len(shaped) == 1 and not settings.rows_indexed:
        return shaped[0]
    return shaped


def insert_id_range(last_id: int, affected_rows: int) -> list[int]:
    """Ids generated by a multi-row INSERT: MySQL reports the first one."""
    if affected_rows > 1:
        return list(range(last_id, last_id + affected_rows))
    return [last_id]


class QueryExecutor:
    """
    Runs queries for one session and keeps its query log and last-query state.
    """

    def __init__(self, log: QueryLog | None = None) -> None:
        self.log = log if log is not None else QueryLog()
        self.last_error: LastError | None = None
        self.last_insert_id: int = 0
        self.last_insert_ids: list[int] = []
        self.result: Any = None

    def run(
        self,
        conn: ConnectionPort | None,
        sql: str,
        settings: QuerySettings,
        *,
        database: str | None = None,
    ) -> Any:
        """Execute *sql* with effective *settings* and return the shaped result."""
        if conn is None or not health_check(conn):
            raise NoConnectionError()

        original = sql
        sql = trim(sql, settings.tokens)
        sql, values = extract(sql, settings.tokens, PLACEHOLDER, throws=True)
        sql, params = type_values(sql, values, PLACEHOLDER)
        types = type_string(params)

        _log.debug("SQL: %s", sql)
        if env_settings.LOG_SQL and params:
            _log.debug("Parameters (%s): %r", types, [p.value for p in params])

        try:
            conn.set_charset(settings.charset)
        except DriverError as e:
            raise QueryExecutionError.from_driver(e, query=sql) from e

        self.last_error = None
        index = self.log.append(
            QueryLogEntry(
                query=sql,
                original_query=original,
                database=database,
                settings=settings.public(),
                parameters=tuple(p.value for p in params),
                types=types,
            )
        )

        if params:
            query_result = self._run_prepared(conn, sql, params, types, settings, index)
        else:
            query_result = self._run_plain(conn, sql, settings, index)

        if isinstance(query_result, list):
            result = shape_rows(query_result, settings)
            self.log.patch(index, rows=len(query_result))
        else:
            result = query_result if not params else self.last_error is None
            if self.last_error is None:
                self._record_insert_ids(conn, index)

        self.result = result
        self.log.patch(index, result=result)
        self.last_insert_id = conn.insert_id()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record_insert_ids(self, conn: ConnectionPort, index: int) -> None:
        last_id = conn.insert_id()
        changes: dict[str, Any] = {"last_insert_id": last_id}
        if last_id:
            affected = self.log[index].affected_rows or 0
            self.last_insert_ids = insert_id_range(last_id, affected)
            changes["last_insert_ids"] = tuple(self.last_insert_ids)
        self.log.patch(index, **changes)

    def _fail(
        self,
        conn: ConnectionPort,
        index: int,
        exc: DriverError,
        error_cls: type[DatabaseError],
        settings: QuerySettings,
        sql: str,
    ) -> None:
        self.last_error = conn.last_error() or exc.last_error
        self.last_insert_ids = []
        self.log.patch(index, error=self.last_error, affected_rows=-1)
        if settings.throw_errors:
            raise error_cls(self.last_error, query=sql) from exc
        _log.warning("%s (suppressed): %s", error_cls.default_message, self.last_error.message)

    def _run_plain(
        self,
        conn: ConnectionPort,
        sql: str,
        settings: QuerySettings,
        index: int,
    ) -> QueryResult:
        try:
            query_result = conn.query(sql)
        except DriverError as e:
            self._fail(conn, index, e, QueryExecutionError, settings, sql)
            return False
        self.log.patch(index, affected_rows=conn.affected_rows())
        return query_result

    def _run_prepared(
        self,
        conn: ConnectionPort,
        sql: str,
        params: Sequence[TypedParameter],
        types: str,
        settings: QuerySettings,
        index: int,
    ) -> QueryResult:
        try:
            stmt = conn.prepare(sql)
        except DriverError as e:
            self._fail(conn, index, e, StatementPreparationError, settings, sql)
            return False

        try:
            stmt.bind(types, [p.value for p in params])
            stmt.execute()
        except DriverError as e:
            stmt.close()
            self._fail(conn, index, e, StatementExecutionError, settings, sql)
            return False

        self.log.patch(index, affected_rows=stmt.affected_rows())
        query_result = stmt.fetch_result()
        stmt.close()
        return query_result
