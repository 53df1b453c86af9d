"""Mapping layer - transform row dicts into typed entities."""

from __future__ import annotations

from row_persist.mapping.materializer import Mapper, RowMaterializer, coerce_temporal

__all__ = [
    "Mapper",
    "RowMaterializer",
    "coerce_temporal",
]
