"""Unit tests for TransactionManager."""

from __future__ import annotations

import sqlite3

import pytest

from row_persist.core.engine import Engine
from row_persist.core.exceptions import TransactionError, TransactionStateError

INSERT_USER = "INSERT INTO users (username, email) VALUES (:username, :email)"


def _user_count(engine: Engine) -> int:
    return engine.fetch_scalar("SELECT COUNT(*) FROM users")


class TestTransactionManager:
    def test_commit_persists_changes(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.execute(INSERT_USER, {"username": "alice", "email": "alice@ex.com"})

        assert _user_count(engine) == 1

    def test_auto_rollback_on_exception(self, engine: Engine) -> None:
        with pytest.raises(RuntimeError, match="boom"), engine.transaction() as tx:
            tx.execute(INSERT_USER, {"username": "alice", "email": "alice@ex.com"})
            raise RuntimeError("boom")

        assert _user_count(engine) == 0

    def test_explicit_rollback(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.execute(INSERT_USER, {"username": "alice", "email": None})
            tx.rollback()

        assert _user_count(engine) == 0

    def test_execute_returns_rowcount(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            assert tx.execute(INSERT_USER, {"username": "alice", "email": None}) == 1

    def test_fetch_all_sees_uncommitted_rows(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.execute("INSERT INTO users (username) VALUES (?)", ["bob"])
            rows = tx.fetch_all("SELECT username FROM users")
            assert rows == [{"username": "bob"}]

    def test_execute_batch(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            keys = tx.execute_batch(
                "INSERT INTO users (username) VALUES (?)", [("a",), ("b",), ("c",)]
            )
        assert keys == []
        assert _user_count(engine) == 3

    def test_execute_batch_returning_keys(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            keys = tx.execute_batch(
                "INSERT INTO users (username) VALUES (?) RETURNING id",
                [("a",), ("b",)],
                returning=True,
            )
        assert len(keys) == 2
        assert keys[1] > keys[0]
        assert _user_count(engine) == 2

    def test_execute_batch_empty(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            assert tx.execute_batch("INSERT INTO users (username) VALUES (?)", []) == []

    def test_state_transitions(self, engine: Engine) -> None:
        tx = engine.transaction()
        assert tx.state == "idle"
        with tx:
            assert tx.state == "active"
        assert tx.state == "committed"

    def test_state_after_exception(self, engine: Engine) -> None:
        tx = engine.transaction()
        with pytest.raises(ValueError), tx:
            raise ValueError("x")
        assert tx.state == "rolled_back"

    def test_double_commit_raises(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.commit()
            with pytest.raises(TransactionStateError, match="commit"):
                tx.commit()

    def test_execute_after_commit_raises(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.commit()
            with pytest.raises(TransactionStateError):
                tx.execute(INSERT_USER, {"username": "x", "email": None})

    def test_rollback_after_commit_raises(self, engine: Engine) -> None:
        with engine.transaction() as tx:
            tx.commit()
            with pytest.raises(TransactionStateError, match="rollback"):
                tx.rollback()

    def test_connection_returned_to_pool(self, engine: Engine) -> None:
        # pool_size=1: a leaked connection would make the next call fail
        with engine.transaction() as tx:
            tx.execute(INSERT_USER, {"username": "a", "email": None})
        with pytest.raises(RuntimeError), engine.transaction():
            raise RuntimeError
        assert _user_count(engine) == 1

    def test_autocommit_restored(self, engine: Engine) -> None:
        with engine.transaction():
            pass
        with engine.connection_manager.get_connection() as conn:
            assert conn.isolation_level is None
            assert conn.in_transaction is False

    def test_state_errors_share_transaction_base(self, engine: Engine) -> None:
        tx = engine.transaction()
        with pytest.raises(TransactionError):
            tx.commit()


class TestCommitFailure:
    @pytest.fixture
    def deferred(self, engine: Engine) -> Engine:
        engine.execute("CREATE TABLE owners (id INTEGER PRIMARY KEY)")
        engine.execute(
            "CREATE TABLE pets (id INTEGER PRIMARY KEY,"
            " owner_id INTEGER REFERENCES owners(id) DEFERRABLE INITIALLY DEFERRED)"
        )
        return engine

    def test_failed_commit_rolls_back(self, deferred: Engine) -> None:
        tx = deferred.transaction()
        # The dangling reference is only checked at COMMIT
        with pytest.raises(sqlite3.IntegrityError), tx:
            tx.execute("INSERT INTO pets (owner_id) VALUES (?)", [999])

        assert tx.state == "rolled_back"
        assert deferred.fetch_all("SELECT * FROM pets") == []
        with deferred.connection_manager.get_connection() as conn:
            assert conn.in_transaction is False
            assert conn.isolation_level is None

    def test_release_survives_failed_autocommit_reset(
        self, engine: Engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        adapter = engine.connection_manager.adapter
        original = adapter.set_autocommit

        def failing_reset(connection, enabled: bool) -> None:
            if enabled:
                raise sqlite3.OperationalError("cannot reset autocommit")
            original(connection, enabled)

        monkeypatch.setattr(adapter, "set_autocommit", failing_reset)
        with engine.transaction() as tx:
            tx.execute(INSERT_USER, {"username": "a", "email": None})
        monkeypatch.undo()

        # pool_size=1: the connection must be back in the pool
        assert _user_count(engine) == 1
