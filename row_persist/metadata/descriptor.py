"""Entity descriptor data classes.

Frozen dataclasses describing how an entity type maps onto its table.
Descriptors are declared explicitly and held by the EntityRegistry.
"""

from __future__ import annotations

from dataclasses import dataclass

from row_persist.core.enums import IdentifierRole, TemporalKind


@dataclass(frozen=True)
class Column:
    """A persisted column declared on one entity type."""

    name: str
    attribute: str = ""
    role: IdentifierRole = IdentifierRole.NONE
    auto_generated: bool = False
    upsert_ignore: bool = False
    nullable_foreign_key: bool = False
    temporal: TemporalKind | None = None

    def __post_init__(self) -> None:
        if not self.attribute:
            object.__setattr__(self, "attribute", self.name)

    @property
    def is_identifier(self) -> bool:
        return self.role is not IdentifierRole.NONE

    @property
    def is_primary(self) -> bool:
        return self.role is IdentifierRole.PRIMARY


@dataclass(frozen=True)
class EntityDescriptor:
    """Table metadata for a single entity type (one hierarchy level)."""

    entity: type
    table: str
    columns: tuple[Column, ...] = ()
    sub_table: bool = False
    parent: type | None = None

    @property
    def name(self) -> str:
        return self.entity.__name__


@dataclass(frozen=True)
class Statement:
    """SQL text plus the columns bound to its positional placeholders, in order."""

    sql: str
    columns: tuple[Column, ...] = ()


@dataclass(frozen=True)
class UpsertPlan:
    """Resolved write plan for one hierarchy level."""

    descriptor: EntityDescriptor
    columns: tuple[Column, ...]
    identifier_columns: tuple[Column, ...]
    statement: Statement
    generated_column: Column | None = None

    @property
    def table(self) -> str:
        return self.descriptor.table


@dataclass(frozen=True)
class DeletePlan:
    """Resolved delete plan for one hierarchy level."""

    descriptor: EntityDescriptor
    key_column: Column
    statement: Statement

    @property
    def table(self) -> str:
        return self.descriptor.table

