"""SQL statement building."""

from __future__ import annotations

from row_persist.sql.builder import SQLBuilder, quote

__all__ = [
    "SQLBuilder",
    "quote",
]
