"""Unit tests for engines.transaction: outer transactions and savepoint nesting."""

import re

import pytest

from sqlint.core.errors import QueryExecutionError
from sqlint.engines.transaction import TransactionContext, TransactionCoordinator
from tests.utils.connection import FakeConnection


class Boom(Exception):
    pass


def _coordinator(conn: FakeConnection) -> TransactionCoordinator:
    return TransactionCoordinator(connect=lambda: conn, execute=conn.query)


class TestOuterTransaction:
    def test_commit_by_default(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction() as tx:
            assert not tx.is_nested
            assert coordinator.in_transaction
            conn.query("INSERT INTO t VALUES (1)")

        assert conn.names() == [
            "autocommit",
            "begin",
            "query:INSERT INTO t VALUES (1)",
            "commit",
            "autocommit",
        ]
        assert conn.autocommit_flag is True
        assert coordinator.depth == 0

    def test_prior_autocommit_restored(self):
        conn = FakeConnection(autocommit=False)
        with _coordinator(conn).transaction():
            pass
        assert conn.calls[-1] == ("autocommit", False)

    def test_failure_rolls_back_and_reraises(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        def work(tx: TransactionContext) -> None:
            conn.query("INSERT INTO t VALUES (1)")
            conn.query("INSERT INTO t VALUES (2)")
            raise Boom("second step failed")

        with pytest.raises(Boom):
            coordinator.transact(work)

        names = conn.names()
        assert "commit" not in names
        assert names[-2:] == ["rollback", "autocommit"]
        assert conn.autocommit_flag is True
        assert coordinator.depth == 0

    def test_failure_swallowed(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        def work(tx: TransactionContext) -> int:
            raise Boom()

        assert coordinator.transact(work, throws=False) is None
        assert "rollback" in conn.names()

    def test_base_exception_always_propagates(self):
        conn = FakeConnection()
        with pytest.raises(KeyboardInterrupt):
            with _coordinator(conn).transaction(throws=False):
                raise KeyboardInterrupt()
        assert "rollback" in conn.names()

    def test_returns_operation_result(self):
        conn = FakeConnection()
        assert _coordinator(conn).transact(lambda tx: 42) == 42

    def test_explicit_rollback_skips_commit(self):
        conn = FakeConnection()
        with _coordinator(conn).transaction() as tx:
            conn.query("DELETE FROM t")
            tx.rollback()
            assert not tx.pending
        assert "commit" not in conn.names()
        assert conn.names().count("rollback") == 1

    def test_explicit_commit_once(self):
        conn = FakeConnection()
        with _coordinator(conn).transaction() as tx:
            tx.commit()
        assert conn.names().count("commit") == 1

    def test_commit_failure(self):
        conn = FakeConnection()
        conn.fail_on("commit", 1213, "Deadlock found")

        with pytest.raises(QueryExecutionError, match="Deadlock found"):
            with _coordinator(conn).transaction():
                pass

        assert conn.names()[-2:] == ["rollback", "autocommit"]

    def test_begin_failure_restores_autocommit(self):
        conn = FakeConnection()
        conn.fail_on("begin", 2013, "Lost connection to MySQL server during query")
        coordinator = _coordinator(conn)

        with pytest.raises(QueryExecutionError):
            with coordinator.transaction():
                pytest.fail("unit of work must not run")

        assert conn.autocommit_flag is True
        assert coordinator.depth == 0

    def test_failed_rollback_does_not_hide_error(self):
        conn = FakeConnection()
        conn.fail_on("rollback")
        with pytest.raises(Boom):
            with _coordinator(conn).transaction():
                raise Boom()
        assert conn.calls[-1] == ("autocommit", True)

    def test_named_savepoint(self):
        conn = FakeConnection()
        with _coordinator(conn).transaction() as tx:
            tx.savepoint("before_update")
            tx.rollback("before_update")
            assert tx.pending
        assert conn.sql == ["SAVEPOINT `before_update`", "ROLLBACK TO `before_update`"]
        assert "commit" in conn.names()


class TestNestedTransaction:
    def test_nested_uses_savepoint(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction():
            with coordinator.transaction() as inner:
                assert inner.is_nested
                assert coordinator.depth == 2
                conn.query("UPDATE t SET a = 1")
            assert coordinator.depth == 1

        names = conn.names()
        assert names.count("begin") == 1
        assert names.count("commit") == 1
        assert names.count("autocommit") == 2
        assert re.fullmatch(r"query:SAVEPOINT `sp_\d+`", names[2])

    def test_nested_failure_rolls_back_to_savepoint(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction():
            conn.query("UPDATE t SET a = 1")

            def inner(tx: TransactionContext) -> None:
                conn.query("UPDATE t SET b = 2")
                raise Boom()

            with pytest.raises(Boom):
                coordinator.transact(inner)

        sql = conn.sql
        savepoint = re.fullmatch(r"SAVEPOINT (`sp_\d+`)", sql[1]).group(1)
        assert sql == ["UPDATE t SET a = 1", f"SAVEPOINT {savepoint}", "UPDATE t SET b = 2", f"ROLLBACK TO {savepoint}"]
        names = conn.names()
        assert "rollback" not in names
        assert names[-2:] == ["commit", "autocommit"]

    def test_nested_failure_swallowed(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction():
            assert coordinator.transact(lambda tx: 1 / 0, throws=False) is None
            conn.query("UPDATE t SET c = 3")

        assert conn.sql[-1] == "UPDATE t SET c = 3"
        assert "commit" in conn.names()

    def test_nested_rollback_targets_own_savepoint(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction():
            with coordinator.transaction() as inner:
                inner.rollback()

        assert conn.sql[1] == f"ROLLBACK TO `{inner.savepoint_name}`"
        assert "rollback" not in conn.names()

    def test_nested_commit_is_deferred(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with coordinator.transaction():
            with coordinator.transaction() as inner:
                inner.commit()
                assert not inner.pending
                assert "commit" not in conn.names()

        assert conn.names().count("commit") == 1

    def test_outer_failure_after_nested_success(self):
        conn = FakeConnection()
        coordinator = _coordinator(conn)

        with pytest.raises(Boom):
            with coordinator.transaction():
                with coordinator.transaction():
                    conn.query("INSERT INTO t VALUES (1)")
                raise Boom()

        assert "commit" not in conn.names()
        assert "rollback" in conn.names()
        assert coordinator.depth == 0
