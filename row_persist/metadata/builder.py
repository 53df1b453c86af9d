"""Entity declaration DSL builder.

Provides a fluent builder for declaring entity descriptors::

    users = (
        entity(User, "users")
        .primary_key("id", auto_generated=True)
        .identifier("username")
        .auto_fields()
        .build()
    )
"""

from __future__ import annotations

import dataclasses
import inspect

from row_persist.core.enums import IdentifierRole, TemporalKind
from row_persist.core.exceptions import SchemaError
from row_persist.metadata.descriptor import Column, EntityDescriptor
from row_persist.metadata.registry import EntityRegistry


def _get_field_names(cls: type) -> list[str]:
    """Extract field names from a class (dataclass, Pydantic, or plain)."""
    # Pydantic model
    if hasattr(cls, "model_fields"):
        return list(cls.model_fields.keys())

    # Dataclass
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls)]

    # Plain class - use __init__ parameters
    try:
        sig = inspect.signature(cls.__init__)  # type: ignore[misc]
        return [
            name
            for name, param in sig.parameters.items()
            if name != "self" and param.kind is not inspect.Parameter.VAR_KEYWORD
        ]
    except (ValueError, TypeError):
        return []


def entity(entity_class: type, table: str) -> EntityMappingBuilder:
    """Entry point for the entity declaration DSL.

    Args:
        entity_class: The entity type being declared.
        table: Name of the table holding this level's columns.

    Returns:
        A builder for chaining column declarations.
    """
    return EntityMappingBuilder(entity_class, table)


class EntityMappingBuilder:
    """Fluent builder for entity descriptors."""

    def __init__(self, entity_class: type, table: str) -> None:
        self._entity_class = entity_class
        self._table = table
        self._columns: list[Column] = []
        self._parent: type | None = None
        self._auto_fields_enabled = False

    def extends(self, parent: type) -> EntityMappingBuilder:
        """Declare this entity a sub-table of *parent*, sharing its key."""
        self._parent = parent
        return self

    def column(
        self,
        name: str,
        attribute: str | None = None,
        *,
        upsert_ignore: bool = False,
        temporal: TemporalKind | None = None,
    ) -> EntityMappingBuilder:
        """Map a plain column."""
        self._columns.append(
            Column(
                name=name,
                attribute=attribute or name,
                upsert_ignore=upsert_ignore,
                temporal=temporal,
            )
        )
        return self

    def primary_key(
        self,
        name: str,
        attribute: str | None = None,
        *,
        auto_generated: bool = False,
    ) -> EntityMappingBuilder:
        """Map the primary identifier.

        Auto-generated keys are left out of the upsert column list; the
        database assigns them and they are written back onto the entity.
        """
        self._columns.append(
            Column(
                name=name,
                attribute=attribute or name,
                role=IdentifierRole.PRIMARY,
                auto_generated=auto_generated,
                upsert_ignore=auto_generated,
            )
        )
        return self

    def identifier(self, name: str, attribute: str | None = None) -> EntityMappingBuilder:
        """Map a natural-key column that upserts match on."""
        self._columns.append(
            Column(name=name, attribute=attribute or name, role=IdentifierRole.IDENTIFIER)
        )
        return self

    def foreign_key(
        self,
        name: str,
        attribute: str | None = None,
        *,
        nullable: bool = False,
    ) -> EntityMappingBuilder:
        """Map a foreign key; nullable keys bind None or 0 as NULL."""
        self._columns.append(
            Column(name=name, attribute=attribute or name, nullable_foreign_key=nullable)
        )
        return self

    def auto_fields(self) -> EntityMappingBuilder:
        """Map every remaining field of the entity class by attribute name.

        Fields the parent type declares are left to the parent's table.
        """
        self._auto_fields_enabled = True
        return self

    def build(self) -> EntityDescriptor:
        """Validate and build the EntityDescriptor.

        Raises:
            SchemaError: If columns are declared twice or more than one
                primary key is declared on this level.
        """
        columns = list(self._columns)

        if self._auto_fields_enabled:
            declared = {c.attribute for c in columns}
            inherited = set(_get_field_names(self._parent)) if self._parent else set()
            for name in _get_field_names(self._entity_class):
                if name not in declared and name not in inherited:
                    columns.append(Column(name=name))

        seen: set[str] = set()
        for col in columns:
            if col.name in seen:
                raise SchemaError(f"Column '{col.name}' declared twice on '{self._table}'")
            seen.add(col.name)

        if sum(1 for c in columns if c.is_primary) > 1:
            raise SchemaError(f"More than one primary key declared on '{self._table}'")

        return EntityDescriptor(
            entity=self._entity_class,
            table=self._table,
            columns=tuple(columns),
            sub_table=self._parent is not None,
            parent=self._parent,
        )

    def register(self, registry: EntityRegistry) -> EntityDescriptor:
        """Build and add the descriptor to *registry*."""
        return registry.add(self.build())
