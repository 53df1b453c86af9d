"""PostgreSQL adapter using psycopg (v3+)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_persist.core.connection import ConnectionConfig
from row_persist.core.exceptions import ConnectionError, PoolError  # noqa: A004


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


def _first_value(row: Any) -> Any:
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()))
    return row[0]


class PostgresqlSyncAdapter:
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import psycopg
        import psycopg.rows

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        for _ in range(config.pool_size):
            try:
                conn = psycopg.connect(
                    conninfo, row_factory=psycopg.rows.dict_row, autocommit=True
                )
            except psycopg.Error as e:
                self.close_pool(pool)
                raise ConnectionError(f"Cannot connect to PostgreSQL: {e}") from e
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
    ) -> Any:
        return connection.execute(sql, params)

    def execute_batch(
        self,
        connection: Any,
        sql: str,
        rows: Sequence[tuple[Any, ...]],
        returning: bool = False,
    ) -> list[Any]:
        with connection.cursor() as cursor:
            cursor.executemany(sql, rows, returning=returning)
            if not returning:
                return []
            keys: list[Any] = []
            while True:
                keys.append(_first_value(cursor.fetchone()))
                if not cursor.nextset():
                    break
            return keys

    def last_insert_id(self, cursor: Any) -> Any:
        # Postgres has no lastrowid; the statement must use RETURNING
        if cursor.description is None:
            return None
        return _first_value(cursor.fetchone())

    def set_autocommit(self, connection: Any, enabled: bool) -> None:
        connection.autocommit = enabled

    def begin(self, connection: Any) -> None:
        # psycopg opens the transaction on the first statement
        return None
