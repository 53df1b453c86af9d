"""SQLite adapter using stdlib sqlite3.

Upserts rely on ``INSERT ... ON CONFLICT ... RETURNING`` which needs
SQLite 3.35 or newer.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from row_persist.core.connection import ConnectionConfig
from row_persist.core.exceptions import ConnectionError, PoolError  # noqa: A004

# ISO-8601 text storage; the default datetime adapters are deprecated
sqlite3.register_adapter(datetime, datetime.isoformat)
sqlite3.register_adapter(date, date.isoformat)


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite.

        Connections start in autocommit mode; transactions are opened
        explicitly through begin().
        """
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            try:
                conn = sqlite3.connect(
                    config.database, isolation_level=None, check_same_thread=False
                )
            except sqlite3.Error as e:
                self.close_pool(pool)
                raise ConnectionError(
                    f"Cannot open SQLite database '{config.database}': {e}"
                ) from e
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON")
            if config.database != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        """Release a connection back to the pool."""
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, params or ())

    def execute_batch(
        self,
        connection: sqlite3.Connection,
        sql: str,
        rows: Sequence[tuple[Any, ...]],
        returning: bool = False,
    ) -> list[Any]:
        # executemany() rejects statements that return rows
        if not returning:
            connection.executemany(sql, rows)
            return []
        keys: list[Any] = []
        for row in rows:
            # Drain the cursor so the statement completes before COMMIT
            returned = connection.execute(sql, row).fetchall()
            keys.append(returned[0][0] if returned else None)
        return keys

    def last_insert_id(self, cursor: sqlite3.Cursor) -> Any:
        return cursor.lastrowid

    def set_autocommit(self, connection: sqlite3.Connection, enabled: bool) -> None:
        connection.isolation_level = None if enabled else "DEFERRED"

    def begin(self, connection: sqlite3.Connection) -> None:
        if not connection.in_transaction:
            connection.execute("BEGIN")
