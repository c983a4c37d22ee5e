"""
pymysql-backed connection.

pymysql has no server-side prepared statements, so ``MySQLStatement`` emulates
them: ``?`` placeholders outside quoted spans become ``%s`` and the bound values
are escaped by pymysql on execute.
"""

import contextlib
import logging
from collections.abc import Iterator, Sequence
from typing import Any

import pymysql

from sqlint.core.driver.contracts import QueryResult
from sqlint.core.errors import DriverError, LastError

_log = logging.getLogger(__name__)

# CR_PARAMS_NOT_BOUND
_ER_BIND_COUNT = 2031
_ER_PARSE_ERROR = 1064

_BINDERS: dict[str, Any] = {
    "i": int,
    "d": float,
    "s": str,
}


def to_format_paramstyle(sql: str) -> tuple[str, int]:
    """
    Rewrite ``?`` placeholders as ``%s`` and escape literal ``%`` as ``%%``.

    Quoted spans (``'...'``, ``"..."`` and backticks) are copied verbatim apart
    from the ``%`` escaping. Returns the rewritten SQL and the placeholder count.
    Raises ``DriverError`` on an unterminated quoted span.
    """
    out: list[str] = []
    count = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if ch in ("'", '"', "`"):
            quote = ch
            start = i
            out.append(ch)
            i += 1
            closed = False
            while i < length:
                c = sql[i]
                out.append("%%" if c == "%" else c)
                if c == quote:
                    if i + 1 < length and sql[i + 1] == quote:
                        out.append(sql[i + 1])
                        i += 2
                        continue
                    i += 1
                    closed = True
                    break
                if c == "\\" and quote != "`" and i + 1 < length:
                    nxt = sql[i + 1]
                    out.append("%%" if nxt == "%" else nxt)
                    i += 2
                    continue
                i += 1
            if not closed:
                raise DriverError(
                    _ER_PARSE_ERROR, f"Unterminated {quote} quoted string at index {start}"
                )
            continue

        if ch == "?":
            out.append("%s")
            count += 1
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
        i += 1

    return "".join(out), count


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts (column order preserved)."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


class MySQLStatement:
    """Emulated prepared statement bound to a ``MySQLConnection``."""

    def __init__(self, connection: "MySQLConnection", sql: str) -> None:
        self._connection = connection
        self.sql = sql
        self._format_sql, self.param_count = to_format_paramstyle(sql)
        self._values: tuple[Any, ...] = ()
        self._result: QueryResult = False
        self._affected_rows = 0

    def bind(self, types: str, values: Sequence[Any]) -> None:
        if len(types) != len(values) or len(values) != self.param_count:
            raise self._connection.fail(
                _ER_BIND_COUNT,
                "Number of bind variables doesn't match number of fields in prepared statement",
            )
        try:
            self._values = tuple(_BINDERS[t](v) for t, v in zip(types, values))
        except KeyError as e:
            raise self._connection.fail(_ER_BIND_COUNT, f"Unknown bind type {e.args[0]!r}") from e

    def execute(self) -> None:
        self._result, self._affected_rows = self._connection.run(self._format_sql, self._values)

    def fetch_result(self) -> QueryResult:
        return self._result

    def affected_rows(self) -> int:
        return self._affected_rows

    def close(self) -> None:
        self._values = ()
        self._result = False


class MySQLConnection:
    """Adapts a ``pymysql`` connection to ``ConnectionPort``."""

    def __init__(self, conn: pymysql.connections.Connection) -> None:
        self.raw = conn
        self._last_error: LastError | None = None
        self._insert_id = 0
        self._affected_rows = 0

    @contextlib.contextmanager
    def _translate(self) -> Iterator[None]:
        self._last_error = None
        try:
            yield
        except pymysql.Error as e:
            code = e.args[0] if e.args and isinstance(e.args[0], int) else 0
            message = str(e.args[1]) if len(e.args) > 1 else str(e)
            raise self.fail(code, message) from e

    def fail(self, code: int, message: str) -> DriverError:
        """Remember an error as the last one and return it for raising."""
        self._last_error = LastError(code, message)
        return DriverError(code, message)

    def run(self, sql: str, args: Sequence[Any] | None = None) -> tuple[QueryResult, int]:
        """Execute on a fresh cursor; return (rows or ``True``, affected rows)."""
        self._insert_id = 0
        self._affected_rows = 0
        with self._translate():
            cur = self.raw.cursor()
            try:
                if args is not None:
                    cur.execute(sql, tuple(args))
                else:
                    cur.execute(sql)
                self._affected_rows = cur.rowcount if cur.rowcount is not None else 0
                self._insert_id = cur.lastrowid or 0
                result: QueryResult = cursor_to_dicts(cur) if cur.description else True
            finally:
                cur.close()
        return result, self._affected_rows

    def is_alive(self) -> bool:
        if not self.raw.open:
            return False
        try:
            self.raw.ping(reconnect=False)
        except pymysql.Error as e:
            _log.debug("MySQL ping failed: %s", e)
            return False
        return True

    def set_charset(self, name: str) -> None:
        with self._translate():
            self.raw.set_character_set(name)

    def prepare(self, sql: str) -> MySQLStatement:
        self._last_error = None
        try:
            return MySQLStatement(self, sql)
        except DriverError as e:
            self._last_error = e.last_error
            raise

    def query(self, sql: str) -> QueryResult:
        result, _ = self.run(sql)
        return result

    def begin(self) -> None:
        with self._translate():
            self.raw.begin()

    def commit(self) -> None:
        with self._translate():
            self.raw.commit()

    def rollback(self) -> None:
        with self._translate():
            self.raw.rollback()

    def get_autocommit(self) -> bool:
        return bool(self.raw.get_autocommit())

    def autocommit(self, value: bool) -> None:
        with self._translate():
            self.raw.autocommit(value)

    def insert_id(self) -> int:
        return self._insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def last_error(self) -> LastError | None:
        return self._last_error

    def select_db(self, name: str) -> None:
        with self._translate():
            self.raw.select_db(name)

    def close(self) -> None:
        with self._translate():
            self.raw.close()
