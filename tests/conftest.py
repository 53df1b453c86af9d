"""Shared test fixtures.

Domain used throughout: a three-level hierarchy User -> Student ->
GradStudent sharing the users' generated key, and Sections linked to
students through an enrollments join table.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime

import pytest

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.engine import Engine
from row_persist.core.enums import IdentifierRole, TemporalKind
from row_persist.metadata.builder import entity
from row_persist.metadata.descriptor import Column
from row_persist.metadata.registry import EntityRegistry
from row_persist.persistence.engine import PersistenceEngine

SCHEMA = [
    "CREATE TABLE users ("
    " id INTEGER PRIMARY KEY AUTOINCREMENT,"
    " username TEXT NOT NULL UNIQUE,"
    " email TEXT,"
    " created_at TIMESTAMP,"
    " advisor_id INTEGER REFERENCES users(id))",
    "CREATE TABLE students ("
    " id INTEGER PRIMARY KEY REFERENCES users(id),"
    " gpa REAL NOT NULL,"
    " enrolled_on DATE)",
    "CREATE TABLE grad_students ("
    " id INTEGER PRIMARY KEY REFERENCES students(id),"
    " thesis TEXT NOT NULL)",
    "CREATE TABLE sections ("
    " section_id INTEGER PRIMARY KEY AUTOINCREMENT,"
    " code TEXT NOT NULL UNIQUE,"
    " title TEXT)",
    "CREATE TABLE enrollments ("
    " student_id INTEGER NOT NULL REFERENCES students(id),"
    " section_id INTEGER NOT NULL REFERENCES sections(section_id),"
    " PRIMARY KEY (student_id, section_id))",
]


@dataclass
class User:
    id: int | None = None
    username: str = ""
    email: str | None = None
    created_at: datetime | None = None
    advisor_id: int | None = None


@dataclass
class Student(User):
    gpa: float | None = None
    enrolled_on: date | None = None


@dataclass
class GradStudent(Student):
    thesis: str | None = None


@dataclass
class Section:
    section_id: int | None = None
    code: str = ""
    title: str | None = None


def build_registry() -> EntityRegistry:
    registry = EntityRegistry()
    registry.register(
        User,
        "users",
        columns=[
            Column(
                "id", role=IdentifierRole.PRIMARY, auto_generated=True, upsert_ignore=True
            ),
            Column("username", role=IdentifierRole.IDENTIFIER),
            Column("email"),
            Column("created_at", temporal=TemporalKind.DATETIME),
            Column("advisor_id", nullable_foreign_key=True),
        ],
    )
    registry.register(
        Student,
        "students",
        columns=[Column("gpa"), Column("enrolled_on", temporal=TemporalKind.DATE)],
        sub_table=True,
        parent=User,
    )
    entity(GradStudent, "grad_students").extends(Student).column("thesis").register(registry)
    (
        entity(Section, "sections")
        .primary_key("section_id", auto_generated=True)
        .identifier("code")
        .column("title")
        .register(registry)
    )
    return registry


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def registry() -> EntityRegistry:
    return build_registry()


@pytest.fixture
def engine(sqlite_config: ConnectionConfig) -> Iterator[Engine]:
    """Query primitives over a single in-memory connection with the test schema."""
    eng = Engine(ConnectionManager(sqlite_config))
    for statement in SCHEMA:
        eng.execute(statement)
    yield eng
    eng.close()


@pytest.fixture
def persistence(engine: Engine, registry: EntityRegistry) -> PersistenceEngine:
    return PersistenceEngine(engine, registry)


@pytest.fixture
def statements(engine: Engine) -> list[str]:
    """SQL text executed on the pooled connection, in order."""
    executed: list[str] = []
    with engine.connection_manager.get_connection() as conn:
        conn.set_trace_callback(executed.append)
    return executed
