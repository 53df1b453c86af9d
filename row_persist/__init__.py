"""RowPersist - hierarchy-aware relational persistence engine."""

from __future__ import annotations

from row_persist.core.connection import (
    ConnectionConfig,
    ConnectionManager,
    PersistenceSettings,
)
from row_persist.core.engine import Engine
from row_persist.core.enums import DatabaseBackend, IdentifierRole, TemporalKind
from row_persist.core.exceptions import (
    AdapterError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    MappingError,
    MissingIdentifierError,
    PoolError,
    RowPersistError,
    SchemaError,
    StatementError,
    TransactionError,
    TransactionStateError,
    UnregisteredEntityError,
)
from row_persist.core.logging import configure_logging, get_logger
from row_persist.core.transaction import TransactionManager
from row_persist.mapping import RowMaterializer
from row_persist.metadata import (
    Column,
    EntityDescriptor,
    EntityRegistry,
    MetadataResolver,
    entity,
)
from row_persist.persistence import PersistenceEngine
from row_persist.repository import Repository
from row_persist.sql import SQLBuilder

__all__ = [
    # Configuration
    "ConnectionConfig",
    "ConnectionManager",
    "PersistenceSettings",
    # Logging
    "configure_logging",
    "get_logger",
    # Query primitives
    "Engine",
    "TransactionManager",
    # Metadata
    "Column",
    "EntityDescriptor",
    "EntityRegistry",
    "MetadataResolver",
    "entity",
    # SQL
    "SQLBuilder",
    # Mapping
    "RowMaterializer",
    # Persistence
    "PersistenceEngine",
    "Repository",
    # Enums
    "DatabaseBackend",
    "IdentifierRole",
    "TemporalKind",
    # Exceptions
    "RowPersistError",
    "SchemaError",
    "UnregisteredEntityError",
    "MissingIdentifierError",
    "ExecutionError",
    "StatementError",
    "MappingError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
