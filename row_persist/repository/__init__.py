"""Repository base class for typed entity access."""

from __future__ import annotations

from row_persist.repository.base import Repository

__all__ = [
    "Repository",
]
