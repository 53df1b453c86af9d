"""Repository base class.

Thin typed wrapper over PersistenceEngine for DDD-oriented usage.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from row_persist.persistence.engine import PersistenceEngine

T = TypeVar("T")


class Repository(Generic[T]):
    """Base repository for one entity type.

    Subclasses add domain-specific finders on top of the generic ones.
    """

    def __init__(self, persistence: PersistenceEngine, entity: type[T]) -> None:
        self.persistence = persistence
        self.entity = entity

    def get(self, identifier: Any) -> T | None:
        """Fetch by primary identifier."""
        key = self.persistence.resolver.primary_identifier_column(self.entity)
        return self.persistence.fetch_one(self.entity, key.name, identifier)

    def find_by(self, column: str, value: Any) -> list[T]:
        return self.persistence.fetch_many(self.entity, column, value)

    def save(self, item: T) -> T:
        self.persistence.upsert(item)
        return item

    def save_all(self, items: Sequence[T]) -> list[T]:
        self.persistence.upsert_all(items)
        return list(items)

    def remove(self, item: T) -> None:
        self.persistence.delete(item)

    def remove_all(self, items: Sequence[T]) -> None:
        self.persistence.delete_all(items)
