"""
Transactions with savepoint-based nesting.

The outermost scope disables autocommit, begins a real transaction and commits
on success unless the unit of work already committed or rolled back. Scopes
opened inside it use ``SAVEPOINT``/``ROLLBACK TO`` and never touch COMMIT or the
autocommit flag. Usage::

    with coordinator.transaction() as tx:
        interface.query("INSERT ...")
        with coordinator.transaction() as inner:   # SAVEPOINT `sp_...`
            interface.query("UPDATE ...")
            inner.rollback()                       # ROLLBACK TO `sp_...`

A failure inside any scope rolls it back before the exception propagates; with
``throws=False`` the exception is swallowed after the rollback.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from sqlint.core.driver import ConnectionPort
from sqlint.core.errors import DriverError, QueryExecutionError, SQLInterfaceError
from sqlint.engines.sql.filters import quote_identifier

_log = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionContext:
    """Handle passed to a unit of work; lives for one ``transaction()`` scope."""

    def __init__(
        self,
        coordinator: TransactionCoordinator,
        *,
        savepoint_name: str | None = None,
        prior_autocommit: bool | None = None,
    ) -> None:
        self._coordinator = coordinator
        self.savepoint_name = savepoint_name
        self.prior_autocommit = prior_autocommit
        # Cleared once commit()/rollback() decided the outcome.
        self.pending = True

    @property
    def is_nested(self) -> bool:
        return self.savepoint_name is not None

    def commit(self) -> None:
        """Commit the transaction. Inside a nested scope the outermost one commits."""
        self.pending = False
        if self.is_nested:
            _log.debug("Commit of savepoint %s deferred to outer transaction", self.savepoint_name)
            return
        self._coordinator.connection().commit()

    def rollback(self, savepoint: str | None = None) -> None:
        """
        Roll back to *savepoint*, or without one to the start of this scope:
        the whole transaction when outermost, this scope's savepoint when nested.
        """
        if savepoint is None and self.is_nested:
            savepoint = self.savepoint_name
        if savepoint is not None:
            self._coordinator.execute(f"ROLLBACK TO {quote_identifier(savepoint)}")
            return
        self._coordinator.connection().rollback()
        self.pending = False

    def savepoint(self, name: str) -> None:
        self._coordinator.execute(f"SAVEPOINT {quote_identifier(name)}")


class TransactionCoordinator:
    """
    Owns the transaction state of one session.

    - connect: returns a live connection, reconnecting if needed
    - execute: runs a statement through the session's query path (and log)
    """

    def __init__(
        self,
        connect: Callable[[], ConnectionPort],
        execute: Callable[[str], Any],
    ) -> None:
        self._connect = connect
        self._execute = execute
        self.depth = 0

    @property
    def in_transaction(self) -> bool:
        return self.depth > 0

    def connection(self) -> ConnectionPort:
        return self._connect()

    def execute(self, sql: str) -> Any:
        return self._execute(sql)

    @contextlib.contextmanager
    def transaction(self, *, throws: bool = True) -> Iterator[TransactionContext]:
        """Open a transaction, or a savepoint when one is already open."""
        conn = self._connect()
        if self.in_transaction:
            scope = self._savepoint_scope(throws)
        else:
            scope = self._transaction_scope(conn, throws)
        with scope as ctx:
            yield ctx

    def transact(
        self,
        operation: Callable[[TransactionContext], T],
        *,
        throws: bool = True,
    ) -> T | None:
        """Run *operation* inside ``transaction()`` and return its result."""
        with self.transaction(throws=throws) as tx:
            return operation(tx)
        return None

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _transaction_scope(self, conn: ConnectionPort, throws: bool) -> Iterator[TransactionContext]:
        ctx = TransactionContext(self, prior_autocommit=conn.get_autocommit())
        try:
            conn.autocommit(False)
            conn.begin()
        except DriverError as e:
            self._restore_autocommit(ctx)
            raise QueryExecutionError.from_driver(e) from e
        self.depth += 1
        try:
            yield ctx
        except BaseException as exc:
            _log.warning("Transaction failed, rolling back: %s", exc)
            self._rollback_after_failure(ctx)
            self._restore_autocommit(ctx)
            if throws or not isinstance(exc, Exception):
                raise
        else:
            try:
                if ctx.pending:
                    ctx.commit()
            except DriverError as e:
                self._rollback_after_failure(ctx)
                raise QueryExecutionError.from_driver(e) from e
            finally:
                self._restore_autocommit(ctx)
        finally:
            self.depth -= 1

    @contextlib.contextmanager
    def _savepoint_scope(self, throws: bool) -> Iterator[TransactionContext]:
        name = f"sp_{time.time_ns()}"
        _log.debug("Nested transaction, using savepoint %s", name)
        ctx = TransactionContext(self, savepoint_name=name)
        ctx.savepoint(name)
        self.depth += 1
        try:
            yield ctx
        except BaseException as exc:
            _log.warning("Nested transaction failed, rolling back to %s: %s", name, exc)
            self._rollback_after_failure(ctx)
            if throws or not isinstance(exc, Exception):
                raise
        finally:
            self.depth -= 1

    def _rollback_after_failure(self, ctx: TransactionContext) -> None:
        try:
            self._connect()
            ctx.rollback()
        except SQLInterfaceError:
            _log.error("Rollback failed", exc_info=True)

    def _restore_autocommit(self, ctx: TransactionContext) -> None:
        if ctx.prior_autocommit is None:
            return
        try:
            self._connect().autocommit(ctx.prior_autocommit)
        except SQLInterfaceError:
            _log.error("Restoring autocommit failed", exc_info=True)
