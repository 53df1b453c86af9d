"""Unit tests for PersistenceEngine write planning."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from conftest import GradStudent, Section, Student, User

from row_persist.core.connection import PersistenceSettings
from row_persist.core.engine import Engine
from row_persist.core.exceptions import MissingIdentifierError, SchemaError
from row_persist.metadata.builder import entity
from row_persist.metadata.descriptor import Column
from row_persist.metadata.registry import EntityRegistry
from row_persist.persistence.engine import PersistenceEngine, _is_unset


@dataclass
class Note:
    body: str = ""


@pytest.fixture
def planner(engine: Engine, registry: EntityRegistry) -> PersistenceEngine:
    return PersistenceEngine(engine, registry)


class TestPlanUpsert:
    def test_one_plan_per_level_root_first(self, planner: PersistenceEngine) -> None:
        plans = planner.plan_upsert(GradStudent)
        assert [p.table for p in plans] == ["users", "students", "grad_students"]

    def test_root_plan_returns_generated_key(self, planner: PersistenceEngine) -> None:
        root = planner.plan_upsert(Student)[0]
        assert root.generated_column is not None
        assert root.generated_column.name == "id"
        assert [c.name for c in root.identifier_columns] == ["username"]
        assert root.statement.sql == (
            'INSERT INTO "users" ("username", "email", "created_at", "advisor_id") '
            "VALUES (?, ?, ?, ?) "
            'ON CONFLICT ("username") DO UPDATE SET "email" = excluded."email", '
            '"created_at" = excluded."created_at", "advisor_id" = excluded."advisor_id" '
            'RETURNING "id"'
        )

    def test_sub_table_plan_matches_on_inherited_key(self, planner: PersistenceEngine) -> None:
        child = planner.plan_upsert(Student)[1]
        assert child.generated_column is None
        assert [c.name for c in child.columns] == ["gpa", "enrolled_on", "id"]
        assert [c.name for c in child.identifier_columns] == ["id"]
        assert child.statement.sql == (
            'INSERT INTO "students" ("gpa", "enrolled_on", "id") VALUES (?, ?, ?) '
            'ON CONFLICT ("id") DO UPDATE SET "gpa" = excluded."gpa", '
            '"enrolled_on" = excluded."enrolled_on"'
        )

    def test_level_without_columns_skipped(self, engine: Engine) -> None:
        registry = EntityRegistry()
        entity(User, "users").primary_key("id", auto_generated=True).identifier(
            "username"
        ).register(registry)
        registry.register(Student, "students", sub_table=True, parent=User)
        plans = PersistenceEngine(engine, registry).plan_upsert(Student)
        assert [p.table for p in plans] == ["users"]

    def test_unregistered_type(self, planner: PersistenceEngine) -> None:
        with pytest.raises(SchemaError):
            planner.plan_upsert(Note)

    def test_no_identifier_columns(self, engine: Engine) -> None:
        registry = EntityRegistry()
        registry.register(Note, "notes", [Column("body")])
        with pytest.raises(SchemaError):
            PersistenceEngine(engine, registry).plan_upsert(Note)


class TestPlanDelete:
    def test_leaf_first_keyed_by_leaf_identifier(self, planner: PersistenceEngine) -> None:
        plans = planner.plan_delete(GradStudent)
        assert [p.table for p in plans] == ["grad_students", "students", "users"]
        assert {p.key_column.name for p in plans} == {"id"}
        assert plans[0].statement.sql == 'DELETE FROM "grad_students" WHERE "id" = ?'

    def test_custom_key_name(self, planner: PersistenceEngine) -> None:
        plans = planner.plan_delete(Section)
        assert plans[0].statement.sql == 'DELETE FROM "sections" WHERE "section_id" = ?'

    def test_missing_identifier_rejected(self, engine: Engine) -> None:
        registry = EntityRegistry()
        registry.register(Note, "notes", [Column("body")])
        with pytest.raises(MissingIdentifierError):
            PersistenceEngine(engine, registry).plan_delete(Note)

    def test_default_identifier_setting(self, engine: Engine) -> None:
        registry = EntityRegistry()
        registry.register(Note, "notes", [Column("body")])
        settings = PersistenceSettings(default_identifier_column="note_id")
        plans = PersistenceEngine(engine, registry, settings).plan_delete(Note)
        assert plans[0].statement.sql == 'DELETE FROM "notes" WHERE "note_id" = ?'


class TestUnsetKey:
    @pytest.mark.parametrize("value", [None, 0, 0.0])
    def test_unset(self, value) -> None:
        assert _is_unset(value)

    @pytest.mark.parametrize("value", [1, -1, "0", "", False])
    def test_set(self, value) -> None:
        assert not _is_unset(value)
