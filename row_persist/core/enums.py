"""Enumerations shared across RowPersist."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class IdentifierRole(Enum):
    """Role a column plays in matching rows."""

    NONE = "none"
    IDENTIFIER = "identifier"
    PRIMARY = "primary"


class TemporalKind(Enum):
    """Date/time domain type a column is materialized into."""

    DATETIME = "datetime"
    DATE = "date"
