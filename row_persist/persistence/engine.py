"""Persistence engine.

Writes and reads entity hierarchies. Batch writes build a plan for every
hierarchy level first, then run all levels inside one transaction:

    upsert_all:  root -> leaf, generated keys written back after each level
    delete_all:  leaf -> root, every level keyed by the leaf's primary id

Any failure rolls the whole batch back and surfaces as one StatementError.
"""

from __future__ import annotations

from collections.abc import Sequence
from numbers import Number
from typing import Any, TypeVar

from row_persist.core.connection import ConnectionConfig, PersistenceSettings
from row_persist.core.engine import Engine, Params
from row_persist.core.exceptions import SchemaError, StatementError
from row_persist.core.logging import get_logger
from row_persist.mapping.materializer import RowMaterializer
from row_persist.metadata.descriptor import Column, DeletePlan, UpsertPlan
from row_persist.metadata.registry import EntityRegistry
from row_persist.metadata.resolver import MetadataResolver
from row_persist.sql.builder import JOIN_ALIAS, SQLBuilder

logger = get_logger(__name__)

T = TypeVar("T")


def _is_unset(value: Any) -> bool:
    """None, or the numeric zero sentinel used for not-yet-generated keys."""
    if value is None:
        return True
    return isinstance(value, Number) and not isinstance(value, bool) and value == 0


def _entity_type(items: Sequence[Any]) -> type:
    entity = type(items[0])
    for item in items:
        if type(item) is not entity:
            raise SchemaError(
                f"Batch mixes entity types '{entity.__name__}' and '{type(item).__name__}'"
            )
    return entity


class PersistenceEngine:
    """Hierarchy-aware upsert, delete and fetch over the query primitives.

    Args:
        engine: Query primitives bound to a connection pool.
        registry: Entity descriptors.
        settings: Optional persistence settings.
    """

    def __init__(
        self,
        engine: Engine,
        registry: EntityRegistry,
        settings: PersistenceSettings | None = None,
    ) -> None:
        self._engine = engine
        self._resolver = MetadataResolver(registry, settings)
        self._builder = SQLBuilder(self._resolver)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        registry: EntityRegistry,
        settings: PersistenceSettings | None = None,
    ) -> PersistenceEngine:
        """Create a PersistenceEngine with its own connection pool."""
        return cls(Engine.from_config(config), registry, settings)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def resolver(self) -> MetadataResolver:
        return self._resolver

    @property
    def builder(self) -> SQLBuilder:
        return self._builder

    # --- Planning ---

    def plan_upsert(self, entity: type) -> list[UpsertPlan]:
        """Per-level upsert plans, root first. Levels without local columns are skipped."""
        plans: list[UpsertPlan] = []
        for descriptor in self._resolver.require_hierarchy(entity):
            local = descriptor.columns
            if not local:
                continue
            columns = self._resolver.upsert_columns(local, descriptor.entity)
            identifiers = self._resolver.identifier_columns(columns)
            generated = self._resolver.generated_column(local)
            statement = self._builder.build_upsert(
                descriptor.table, columns, identifiers, returning=generated
            )
            plans.append(
                UpsertPlan(
                    descriptor=descriptor,
                    columns=statement.columns,
                    identifier_columns=tuple(identifiers),
                    statement=statement,
                    generated_column=generated,
                )
            )
            logger.debug("upsert_planned", table=descriptor.table, sql=statement.sql)
        return plans

    def plan_delete(self, entity: type) -> list[DeletePlan]:
        """Per-level delete plans, leaf first."""
        hierarchy = self._resolver.require_hierarchy(entity)
        key = self._resolver.primary_identifier_column(entity)
        plans: list[DeletePlan] = []
        for descriptor in reversed(hierarchy):
            statement = self._builder.build_delete(descriptor.table, key)
            plans.append(DeletePlan(descriptor=descriptor, key_column=key, statement=statement))
        return plans

    # --- Writes ---

    def upsert_all(self, items: Sequence[Any] | None) -> None:
        """Insert or update *items* across every table of their hierarchy.

        Generated keys are assigned in place to items whose key is None or 0.

        Raises:
            SchemaError: Before any statement runs, if the type cannot be planned.
            StatementError: If any level fails; nothing from this call persists.
        """
        if not items:
            return
        entity = _entity_type(items)
        plans = self.plan_upsert(entity)
        assigned: list[tuple[Any, str, Any]] = []

        try:
            with self._engine.transaction() as tx:
                for plan in plans:
                    rows = [self._bind(plan.columns, item) for item in items]
                    keys = tx.execute_batch(
                        plan.statement.sql, rows, returning=plan.generated_column is not None
                    )
                    if plan.generated_column is not None:
                        assigned.extend(self._propagate_keys(plan.generated_column, items, keys))
                    logger.debug("level_upserted", table=plan.table, rows=len(rows))
        except Exception as e:
            # Keys from the rolled-back rows no longer exist
            for item, attribute, previous in assigned:
                setattr(item, attribute, previous)
            logger.warning("upsert_rolled_back", entity=entity.__name__, error=str(e))
            raise StatementError("Transaction failed, changes rolled back") from e

        logger.info("upsert_committed", entity=entity.__name__, rows=len(items), levels=len(plans))

    def upsert(self, item: Any) -> None:
        """Upsert a single entity."""
        if item is None:
            return
        self.upsert_all([item])

    def delete_all(self, items: Sequence[Any] | None) -> None:
        """Delete *items* from every table of their hierarchy, leaf table first.

        Items without a primary identifier value are skipped.

        Raises:
            SchemaError: Before any statement runs, if the type has no primary identifier.
            StatementError: If any level fails; nothing from this call is deleted.
        """
        if not items:
            return
        entity = _entity_type(items)
        plans = self.plan_delete(entity)

        try:
            with self._engine.transaction() as tx:
                for plan in plans:
                    rows = [
                        (value,)
                        for value in (getattr(item, plan.key_column.attribute) for item in items)
                        if value is not None
                    ]
                    tx.execute_batch(plan.statement.sql, rows)
                    logger.debug("level_deleted", table=plan.table, rows=len(rows))
        except Exception as e:
            logger.warning("delete_rolled_back", entity=entity.__name__, error=str(e))
            raise StatementError("Delete transaction failed, changes rolled back") from e

        logger.info("delete_committed", entity=entity.__name__, rows=len(items), levels=len(plans))

    def delete(self, item: Any) -> None:
        """Delete a single entity."""
        if item is None:
            return
        self.delete_all([item])

    @staticmethod
    def _bind(columns: Sequence[Column], item: Any) -> tuple[Any, ...]:
        values: list[Any] = []
        for col in columns:
            value = getattr(item, col.attribute)
            if col.nullable_foreign_key and _is_unset(value):
                value = None
            values.append(value)
        return tuple(values)

    @staticmethod
    def _propagate_keys(
        column: Column, items: Sequence[Any], keys: Sequence[Any]
    ) -> list[tuple[Any, str, Any]]:
        """Write generated keys onto items still lacking one, in submission order."""
        assigned: list[tuple[Any, str, Any]] = []
        for item, key in zip(items, keys):
            previous = getattr(item, column.attribute)
            if _is_unset(previous) and key is not None:
                setattr(item, column.attribute, key)
                assigned.append((item, column.attribute, previous))
        return assigned

    # --- Reads ---

    def materializer(self, entity: type[T]) -> RowMaterializer[T]:
        """Materializer for fully joined rows of *entity*."""
        return RowMaterializer(entity, self._resolver.all_columns(entity))

    def fetch_one(self, entity: type[T], column: str, value: Any) -> T | None:
        """First *entity* whose *column* equals *value*, or None."""
        sql = self._builder.build_select(
            entity,
            self._builder.build_joined_from(entity),
            self._builder.filter_alias(entity, column),
            column,
            limit=1,
        )
        return self._engine.fetch_one(sql, (value,), mapper=self.materializer(entity))

    def fetch_many(self, entity: type[T], column: str, value: Any) -> list[T]:
        """Every *entity* whose *column* equals *value* (e.g. a foreign key)."""
        sql = self._builder.build_select(
            entity,
            self._builder.build_joined_from(entity),
            self._builder.filter_alias(entity, column),
            column,
        )
        return self._engine.fetch_all(sql, (value,), mapper=self.materializer(entity))

    def fetch_many_to_many(
        self,
        entity: type[T],
        join_table: str,
        join_column: str,
        inverse_join_column: str,
        owner_id: Any,
    ) -> list[T]:
        """*entity* rows linked through *join_table* to the owner *owner_id*.

        Args:
            entity: Target type.
            join_table: Association table.
            join_column: Join-table column holding the owner's id.
            inverse_join_column: Join-table column holding the target's id.
            owner_id: Identifier of the owning side.
        """
        from_sql = self._builder.build_many_to_many_from(
            entity, join_table, join_column, inverse_join_column
        )
        sql = self._builder.build_select(entity, from_sql, JOIN_ALIAS, join_column)
        return self._engine.fetch_all(sql, (owner_id,), mapper=self.materializer(entity))

    # --- Raw passthrough ---

    def query(self, entity: type[T], sql: str, params: Params = None) -> list[T]:
        """Run a raw select and materialize its rows; missing columns keep defaults."""
        return self._engine.fetch_all(sql, params, mapper=self.materializer(entity))

    def execute(self, sql: str, params: Params = None) -> int:
        return self._engine.execute(sql, params)

    def execute_insert(self, sql: str, params: Params = None) -> Any:
        return self._engine.execute_insert(sql, params)

    def close(self) -> None:
        self._engine.close()
