"""Transaction management.

Provides a context manager for executing multiple SQL statements atomically
on one pooled connection. Auto-commits on success, auto-rolls-back on
exception, and always restores autocommit mode and releases the connection.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from row_persist.core.exceptions import TransactionStateError
from row_persist.core.logging import get_logger
from row_persist.core.params import coerce_params, normalize_params

logger = get_logger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    # Check if rows are already dict-like (e.g., psycopg dict_row)
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    # Tuple-like rows, zip with columns
    return [dict(zip(columns, row, strict=True)) for row in rows]


class TransactionManager:
    """Synchronous transaction context manager.

    Args:
        connection_manager: Manager the connection is acquired from on enter
            and released to on exit.
    """

    def __init__(self, connection_manager: Any) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._paramstyle: str = self._adapter.paramstyle
        self._connection: Any = None
        self._state = _TxState.IDLE

    def __enter__(self) -> TransactionManager:
        self._connection = self._connection_manager.acquire()
        try:
            self._adapter.set_autocommit(self._connection, False)
            self._adapter.begin(self._connection)
        except BaseException:
            self._restore()
            raise
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    try:
                        self._connection.commit()
                    except BaseException:
                        # A failed COMMIT (e.g. deferred constraints) leaves the transaction open
                        self._connection.rollback()
                        self._state = _TxState.ROLLED_BACK
                        raise
                    self._state = _TxState.COMMITTED
        finally:
            self._restore()

    def _restore(self) -> None:
        try:
            self._adapter.set_autocommit(self._connection, True)
        except Exception as e:
            logger.warning("autocommit_restore_failed", error=str(e))
        finally:
            self._connection_manager.release(self._connection)

    @property
    def state(self) -> str:
        return self._state.value

    def execute(
        self,
        sql: str,
        params: dict[str, Any] | Sequence[Any] | None = None,
    ) -> int:
        """Execute a write statement within this transaction."""
        self._check_active()
        cursor = self._run(sql, params)
        return int(cursor.rowcount)

    def execute_batch(
        self,
        sql: str,
        rows: Sequence[tuple[Any, ...]],
        returning: bool = False,
    ) -> list[Any]:
        """Execute *sql* once per parameter row; returns generated keys if *returning*."""
        self._check_active()
        if not rows:
            return []
        sql = normalize_params(sql, self._paramstyle)
        return self._adapter.execute_batch(self._connection, sql, rows, returning)

    def fetch_all(
        self,
        sql: str,
        params: dict[str, Any] | Sequence[Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch all rows within transaction context."""
        self._check_active()
        cursor = self._run(sql, params)
        return _rows_to_dicts(cursor)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "commit")
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state in (_TxState.IDLE, _TxState.COMMITTED):
            raise TransactionStateError(self._state.value, "rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def _run(self, sql: str, params: dict[str, Any] | Sequence[Any] | None) -> Any:
        bound = coerce_params(params)
        if bound is not None:
            sql = normalize_params(sql, self._paramstyle)
        return self._adapter.execute(self._connection, sql, bound)

    def _check_active(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")
