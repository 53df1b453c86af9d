"""Row-to-entity materializer.

Builds entity instances from result rows using resolved column metadata.
Columns missing from a row are left at the entity's default, which allows
partial projections.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from row_persist.core.enums import TemporalKind
from row_persist.core.exceptions import MappingError
from row_persist.metadata.descriptor import Column

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Mapper(Protocol[T_co]):
    """Result-row consumer accepted by the Engine's fetch calls."""

    def map_one(self, row: dict[str, Any]) -> T_co: ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T_co]: ...


def coerce_temporal(value: Any, kind: TemporalKind) -> datetime | date:
    """Convert a database temporal value (or its ISO text) to datetime or date."""
    if kind is TemporalKind.DATETIME:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            return datetime.fromisoformat(value)
    else:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return date.fromisoformat(value[:10])
    raise TypeError(f"cannot convert {type(value).__name__} to {kind.value}")


class RowMaterializer(Generic[T]):
    """Maps row dicts onto instances of *target_class*.

    The target class must be constructible without arguments; mapped
    attributes are assigned after construction.

    Args:
        target_class: The entity type to instantiate.
        columns: Mapped columns, usually ``MetadataResolver.all_columns()``.
    """

    def __init__(self, target_class: type[T], columns: Sequence[Column]) -> None:
        self._target_class = target_class
        self._columns = tuple(columns)

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row to a target_class instance."""
        try:
            instance = self._target_class()
            for col in self._columns:
                if col.name not in row:
                    continue
                value = row[col.name]
                if value is not None and col.temporal is not None:
                    value = coerce_temporal(value, col.temporal)
                setattr(instance, col.attribute, value)
        except Exception as e:
            raise MappingError(self._target_class.__name__, str(e)) from e
        return instance

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]
