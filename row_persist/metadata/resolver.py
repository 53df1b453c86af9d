"""Metadata resolver.

Derives table hierarchies and column/identifier mappings from the entity
registry. Every method is a pure function of the registry contents, so
results can be re-derived freely.
"""

from __future__ import annotations

from collections.abc import Sequence

from row_persist.core.connection import PersistenceSettings
from row_persist.core.enums import IdentifierRole
from row_persist.core.exceptions import (
    MissingIdentifierError,
    SchemaError,
    UnregisteredEntityError,
)
from row_persist.metadata.descriptor import Column, EntityDescriptor
from row_persist.metadata.registry import EntityRegistry


class MetadataResolver:
    """Resolves hierarchy and column metadata for registered entity types.

    Args:
        registry: Registry holding the entity descriptors.
        settings: Persistence settings; ``default_identifier_column`` enables
            the literal primary-identifier fallback.
    """

    def __init__(
        self,
        registry: EntityRegistry,
        settings: PersistenceSettings | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings or PersistenceSettings()

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    def table_hierarchy(self, entity: type) -> tuple[EntityDescriptor, ...]:
        """Descriptors from the root ancestor down to *entity*.

        An unregistered type yields an empty tuple, meaning "not persistable".
        """
        chain: list[EntityDescriptor] = []
        seen: set[type] = set()
        descriptor = self._registry.find(entity)
        while descriptor is not None:
            if descriptor.entity in seen:
                raise SchemaError(f"Cyclic parent chain through '{descriptor.name}'")
            seen.add(descriptor.entity)
            chain.insert(0, descriptor)
            if descriptor.parent is None:
                break
            descriptor = self._registry.find(descriptor.parent)
        return tuple(chain)

    def require_hierarchy(self, entity: type) -> tuple[EntityDescriptor, ...]:
        """Like table_hierarchy() but raises for types that are not persistable."""
        hierarchy = self.table_hierarchy(entity)
        if not hierarchy:
            raise UnregisteredEntityError(entity)
        return hierarchy

    def local_columns(self, entity: type) -> tuple[Column, ...]:
        """Columns declared directly on *entity*, not inherited."""
        descriptor = self._registry.find(entity)
        if descriptor is None:
            return ()
        return descriptor.columns

    def all_columns(self, entity: type) -> tuple[Column, ...]:
        """Local columns of every hierarchy level, root first."""
        return tuple(
            col for descriptor in self.table_hierarchy(entity) for col in descriptor.columns
        )

    def primary_identifier_column(self, entity: type) -> Column:
        """The primary identifier column across the whole hierarchy of *entity*.

        Raises:
            MissingIdentifierError: If none is declared and no default
                identifier column is configured.
        """
        for col in self.all_columns(entity):
            if col.is_primary:
                return col
        fallback = self._settings.default_identifier_column
        if fallback is None:
            raise MissingIdentifierError(entity)
        return Column(name=fallback, role=IdentifierRole.PRIMARY)

    def upsert_columns(self, local_columns: Sequence[Column], entity: type) -> list[Column]:
        """Write columns for one level, in parameter-binding order.

        Sub-tables get the inherited primary identifier appended so the child
        row carries the key shared with its parent row.
        """
        columns = [col for col in local_columns if not col.upsert_ignore]
        descriptor = self._registry.find(entity)
        if descriptor is not None and descriptor.sub_table:
            primary = self.primary_identifier_column(entity)
            if all(col.name != primary.name for col in columns):
                columns.append(primary)
        return columns

    @staticmethod
    def identifier_columns(columns: Sequence[Column]) -> list[Column]:
        """Columns an upsert matches existing rows on."""
        return [col for col in columns if col.is_identifier]

    @staticmethod
    def generated_column(local_columns: Sequence[Column]) -> Column | None:
        """The database-generated column declared on a level, if any."""
        for col in local_columns:
            if col.auto_generated:
                return col
        return None

    def owner_of(self, entity: type, column_name: str) -> EntityDescriptor | None:
        """The hierarchy level declaring *column_name*, searching leaf first."""
        for descriptor in reversed(self.table_hierarchy(entity)):
            if any(col.name == column_name for col in descriptor.columns):
                return descriptor
        return None
