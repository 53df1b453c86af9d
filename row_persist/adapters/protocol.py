"""Database adapter protocol.

Every adapter module MUST implement this protocol so the engines stay
driver-agnostic.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from row_persist.core.connection import ConnectionConfig


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (? and :name) or 'pyformat' (%s, %(name)s)."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor-like object."""
        ...

    def execute_batch(
        self,
        connection: Any,
        sql: str,
        rows: Sequence[tuple[Any, ...]],
        returning: bool = False,
    ) -> list[Any]:
        """Execute SQL once per parameter row.

        When *returning* is true the statement carries a RETURNING clause and
        the first returned value of every row is collected, in row order.
        """
        ...

    def last_insert_id(self, cursor: Any) -> Any:
        """Generated key of the last single-row insert on *cursor*."""
        ...

    def set_autocommit(self, connection: Any, enabled: bool) -> None:
        """Switch the connection between autocommit and transactional mode."""
        ...

    def begin(self, connection: Any) -> None:
        """Open a transaction on a connection in transactional mode."""
        ...
