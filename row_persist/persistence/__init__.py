"""Hierarchy-aware persistence engine."""

from __future__ import annotations

from row_persist.persistence.engine import PersistenceEngine

__all__ = [
    "PersistenceEngine",
]
