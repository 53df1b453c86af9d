"""Query primitives.

The Engine executes parameterized statements on a pooled connection,
one connection per call, and optionally applies a mapper to results.
Statements use ``?`` or ``:name`` placeholders regardless of driver.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.exceptions import StatementError
from row_persist.core.logging import get_logger
from row_persist.core.params import coerce_params, normalize_params
from row_persist.core.transaction import TransactionManager, _rows_to_dicts
from row_persist.mapping.materializer import Mapper

logger = get_logger(__name__)

Params = dict[str, Any] | Sequence[Any] | None


class Engine:
    """Synchronous query execution engine."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._paramstyle = connection_manager.adapter.paramstyle

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Engine:
        """Create an Engine from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance

        Returns:
            Engine instance
        """
        return cls(ConnectionManager(config))

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def _execute(self, conn: Any, sql: str, params: Params) -> Any:
        bound = coerce_params(params)
        # Without parameters the driver sends the text verbatim
        if bound is not None:
            sql = normalize_params(sql, self._paramstyle)
        try:
            return self._connection_manager.adapter.execute(conn, sql, bound)
        except Exception as e:
            logger.debug("statement_failed", sql=sql, error=str(e))
            raise StatementError(f"Statement failed: {e}", sql) from e

    def fetch_one(
        self, sql: str, params: Params = None, *, mapper: Mapper[Any] | None = None
    ) -> Any:
        """Fetch the first row, or None if zero rows match."""
        with self._connection_manager.get_connection() as conn:
            rows = _rows_to_dicts(self._execute(conn, sql, params))

        if not rows:
            return None
        if mapper is not None:
            return mapper.map_one(rows[0])
        return rows[0]

    def fetch_all(
        self, sql: str, params: Params = None, *, mapper: Mapper[Any] | None = None
    ) -> Any:
        """Fetch all matching rows."""
        with self._connection_manager.get_connection() as conn:
            rows = _rows_to_dicts(self._execute(conn, sql, params))

        if mapper is not None:
            return mapper.map_many(rows)
        return rows

    def fetch_scalar(self, sql: str, params: Params = None) -> Any:
        """Fetch a single scalar value (first column of first row)."""
        with self._connection_manager.get_connection() as conn:
            row = self._execute(conn, sql, params).fetchone()
            if row is None:
                return None

            # Handle dict rows (e.g., psycopg dict_row)
            if isinstance(row, dict):
                return next(iter(row.values()))

            return row[0]

    def execute(self, sql: str, params: Params = None) -> int:
        """Execute a write statement. Returns affected row count."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._execute(conn, sql, params)
            conn.commit()
            return int(cursor.rowcount)

    def execute_insert(self, sql: str, params: Params = None) -> Any:
        """Execute an insert and return the generated key.

        Returns None when the driver reports no key. PostgreSQL statements
        must carry a RETURNING clause for a key to be reported.
        """
        with self._connection_manager.get_connection() as conn:
            cursor = self._execute(conn, sql, params)
            key = self._connection_manager.adapter.last_insert_id(cursor)
            conn.commit()
            return key

    def transaction(self) -> TransactionManager:
        """Create a new transaction context manager."""
        return TransactionManager(self._connection_manager)

    def close(self) -> None:
        self._connection_manager.close_pool()
