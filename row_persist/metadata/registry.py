"""Entity registry - explicit mapping of entity types to table descriptors.

Types are registered once at startup, either directly::

    registry.register(User, "users", columns=[Column("id", role=IdentifierRole.PRIMARY)])

or with the decorator::

    @registry.entity("students", columns=[...], parent=User, sub_table=True)
    @dataclass
    class Student(User): ...

Parent links are explicit; Python inheritance between the entity classes is
not consulted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from row_persist.core.exceptions import SchemaError, UnregisteredEntityError
from row_persist.metadata.descriptor import Column, EntityDescriptor

E = TypeVar("E", bound=type)


class EntityRegistry:
    """Holds one EntityDescriptor per entity type.

    Raises:
        SchemaError: If a type is registered twice.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, EntityDescriptor] = {}

    def add(self, descriptor: EntityDescriptor) -> EntityDescriptor:
        """Register a prebuilt descriptor."""
        if descriptor.entity in self._descriptors:
            raise SchemaError(f"Entity type '{descriptor.name}' is already registered")
        self._descriptors[descriptor.entity] = descriptor
        return descriptor

    def register(
        self,
        entity: type,
        table: str,
        columns: Iterable[Column] = (),
        *,
        sub_table: bool = False,
        parent: type | None = None,
    ) -> EntityDescriptor:
        """Register *entity* as stored in *table* with its locally declared *columns*."""
        if sub_table and parent is None:
            raise SchemaError(f"Sub-table '{table}' of '{entity.__name__}' needs a parent type")
        return self.add(
            EntityDescriptor(
                entity=entity,
                table=table,
                columns=tuple(columns),
                sub_table=sub_table,
                parent=parent,
            )
        )

    def entity(
        self,
        table: str,
        columns: Iterable[Column] = (),
        *,
        sub_table: bool = False,
        parent: type | None = None,
    ) -> Callable[[E], E]:
        """Class decorator form of register()."""

        def decorator(cls: E) -> E:
            self.register(cls, table, columns, sub_table=sub_table, parent=parent)
            return cls

        return decorator

    def get(self, entity: type) -> EntityDescriptor:
        """Look up the descriptor of *entity*.

        Raises:
            UnregisteredEntityError: If *entity* was never registered.
        """
        try:
            return self._descriptors[entity]
        except KeyError:
            raise UnregisteredEntityError(entity) from None

    def find(self, entity: type) -> EntityDescriptor | None:
        return self._descriptors.get(entity)

    def has(self, entity: type) -> bool:
        """Check if an entity type is registered."""
        return entity in self._descriptors

    @property
    def entities(self) -> list[type]:
        """Registered entity types, sorted by name."""
        return sorted(self._descriptors, key=lambda cls: cls.__name__)

    def __contains__(self, entity: object) -> bool:
        return entity in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
