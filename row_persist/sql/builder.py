"""SQL statement builder.

Builds upsert, delete and hierarchy-joined select statements from resolved
metadata. Statements use ``?`` placeholders; the query primitives convert
them to the driver's style. Every identifier is validated and quoted.

Aliases: the leaf table is ``t``, the ancestor at hierarchy index ``i`` is
``p{i}`` and a many-to-many join table is ``j``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from row_persist.core.exceptions import SchemaError
from row_persist.metadata.descriptor import Column, EntityDescriptor, Statement
from row_persist.metadata.resolver import MetadataResolver

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

LEAF_ALIAS = "t"
JOIN_ALIAS = "j"


def quote(name: str) -> str:
    """Validate and double-quote a table or column name."""
    if not _IDENTIFIER_PATTERN.fullmatch(name):
        raise SchemaError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def ancestor_alias(index: int) -> str:
    return f"p{index}"


class SQLBuilder:
    """Builds statement text for the persistence engine."""

    def __init__(self, resolver: MetadataResolver) -> None:
        self._resolver = resolver

    def build_upsert(
        self,
        table: str,
        columns: Sequence[Column],
        identifier_columns: Sequence[Column],
        returning: Column | None = None,
    ) -> Statement:
        """INSERT ... ON CONFLICT ... DO UPDATE for one table.

        Placeholders are generated alongside the column list from the same
        sequence, so ``Statement.columns`` is the binding order.
        """
        if not columns:
            raise SchemaError(f"No writable columns for upsert into '{table}'")
        if not identifier_columns:
            raise SchemaError(f"No identifier columns to match upserts into '{table}' on")

        names = [col.name for col in columns]
        missing = [col.name for col in identifier_columns if col.name not in names]
        if missing:
            raise SchemaError(f"Identifier columns {missing} are not written to '{table}'")

        column_sql: list[str] = []
        placeholders: list[str] = []
        for col in columns:
            column_sql.append(quote(col.name))
            placeholders.append("?")

        key_names = {col.name for col in identifier_columns}
        # With nothing else to update, re-assign the keys so RETURNING yields the row
        updated = [col for col in columns if col.name not in key_names] or list(identifier_columns)

        sql = (
            f"INSERT INTO {quote(table)} ({', '.join(column_sql)}) "
            f"VALUES ({', '.join(placeholders)}) "
            f"ON CONFLICT ({', '.join(quote(col.name) for col in identifier_columns)}) "
            f"DO UPDATE SET {', '.join(f'{quote(c.name)} = excluded.{quote(c.name)}' for c in updated)}"
        )
        if returning is not None:
            sql += f" RETURNING {quote(returning.name)}"
        return Statement(sql=sql, columns=tuple(columns))

    def build_delete(self, table: str, key_column: Column) -> Statement:
        sql = f"DELETE FROM {quote(table)} WHERE {quote(key_column.name)} = ?"
        return Statement(sql=sql, columns=(key_column,))

    def build_joined_from(self, entity: type) -> str:
        """FROM clause joining every ancestor table to the leaf table.

        Walks from the leaf up to the root; each join equates the current
        alias's identifier with the next ancestor's primary identifier.
        Example: ``"students" t JOIN "users" p0 ON t."id" = p0."id"``
        """
        hierarchy = self._resolver.require_hierarchy(entity)
        alias = LEAF_ALIAS
        from_sql = f"{quote(hierarchy[-1].table)} {alias}"
        if len(hierarchy) == 1:
            return from_sql

        child_id = self._resolver.primary_identifier_column(entity).name
        for index in range(len(hierarchy) - 2, -1, -1):
            parent = hierarchy[index]
            parent_alias = ancestor_alias(index)
            parent_id = self._resolver.primary_identifier_column(parent.entity).name
            from_sql += (
                f" JOIN {quote(parent.table)} {parent_alias}"
                f" ON {alias}.{quote(child_id)} = {parent_alias}.{quote(parent_id)}"
            )
            alias = parent_alias
            child_id = parent_id
        return from_sql

    def build_many_to_many_from(
        self,
        target: type,
        join_table: str,
        join_column: str,
        inverse_join_column: str,
    ) -> str:
        """build_joined_from(target) plus the join table, aliased ``j``.

        The join is made on *inverse_join_column*; callers filter on
        ``j.<join_column>`` with the owning side's id.
        """
        quote(join_column)
        target_id = self._resolver.primary_identifier_column(target).name
        return (
            f"{self.build_joined_from(target)} JOIN {quote(join_table)} {JOIN_ALIAS}"
            f" ON {LEAF_ALIAS}.{quote(target_id)} = {JOIN_ALIAS}.{quote(inverse_join_column)}"
        )

    def build_select_list(self, entity: type) -> str:
        """Every mapped column, qualified by the alias of the level declaring it."""
        hierarchy = self._resolver.require_hierarchy(entity)
        items: list[str] = []
        for index, descriptor in enumerate(hierarchy):
            alias = self._alias(hierarchy, index)
            items.extend(f"{alias}.{quote(col.name)}" for col in descriptor.columns)
        return ", ".join(items) or f"{LEAF_ALIAS}.*"

    def filter_alias(self, entity: type, column_name: str) -> str:
        """Alias a filter on *column_name* targets.

        The leaf alias, unless only an ancestor level declares the column.
        """
        hierarchy = self._resolver.require_hierarchy(entity)
        owner = self._resolver.owner_of(entity, column_name)
        if owner is None:
            return LEAF_ALIAS
        return self._alias(hierarchy, hierarchy.index(owner))

    def build_select(
        self,
        entity: type,
        from_sql: str,
        filter_alias: str,
        filter_column: str,
        limit: int | None = None,
    ) -> str:
        sql = (
            f"SELECT {self.build_select_list(entity)} FROM {from_sql}"
            f" WHERE {filter_alias}.{quote(filter_column)} = ?"
        )
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return sql

    @staticmethod
    def _alias(hierarchy: Sequence[EntityDescriptor], index: int) -> str:
        return LEAF_ALIAS if index == len(hierarchy) - 1 else ancestor_alias(index)
