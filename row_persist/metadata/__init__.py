"""Entity metadata - descriptors, registry, declaration DSL and resolver."""

from __future__ import annotations

from row_persist.metadata.builder import EntityMappingBuilder, entity
from row_persist.metadata.descriptor import (
    Column,
    DeletePlan,
    EntityDescriptor,
    Statement,
    UpsertPlan,
)
from row_persist.metadata.registry import EntityRegistry
from row_persist.metadata.resolver import MetadataResolver

__all__ = [
    "Column",
    "EntityDescriptor",
    "EntityRegistry",
    "EntityMappingBuilder",
    "entity",
    "MetadataResolver",
    "Statement",
    "UpsertPlan",
    "DeletePlan",
]
