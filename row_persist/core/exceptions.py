"""RowPersist exception hierarchy.

All exceptions are RowPersist-specific. Raw driver exceptions are never
exposed to callers directly; they stay attached as ``__cause__``.
"""

from __future__ import annotations


class RowPersistError(Exception):
    """Base exception for all RowPersist errors."""


# --- Schema ---


class SchemaError(RowPersistError):
    """Raised when an entity type lacks the metadata an operation needs.

    Always raised while building a plan, before any statement executes.
    """


class UnregisteredEntityError(SchemaError):
    """Raised when an entity type has no descriptor in the registry."""

    def __init__(self, entity: type) -> None:
        self.entity = entity
        super().__init__(f"Entity type '{entity.__name__}' is not registered")


class MissingIdentifierError(SchemaError):
    """Raised when no primary identifier column can be resolved."""

    def __init__(self, entity: type) -> None:
        self.entity = entity
        super().__init__(
            f"Entity type '{entity.__name__}' declares no primary identifier column"
        )


# --- Execution ---


class ExecutionError(RowPersistError):
    """Base for statement execution errors."""


class StatementError(ExecutionError):
    """Raised when the database rejects a statement.

    For batch writes the whole transaction has been rolled back by the time
    this is raised.
    """

    def __init__(self, detail: str, sql: str | None = None) -> None:
        self.detail = detail
        self.sql = sql
        super().__init__(detail)


# --- Mapping ---


class MappingError(RowPersistError):
    """Raised when a result row cannot be materialized into an entity."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Mapping failed for {target_class}: {detail}")


# --- Transaction ---


class TransactionError(RowPersistError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowPersistError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
