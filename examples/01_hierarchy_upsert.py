"""
Example 01: Hierarchy Upserts

This example demonstrates persisting an entity whose fields are spread over a
parent table and a sub-table sharing the parent's generated key.
"""

from row_persist import (
    Column,
    ConnectionConfig,
    EntityRegistry,
    IdentifierRole,
    PersistenceEngine,
    StatementError,
    configure_logging,
    entity,
)
from dataclasses import dataclass
from typing import Optional


@dataclass
class Person:
    id: Optional[int] = None
    email: str = ""
    name: str = ""


@dataclass
class Employee(Person):
    salary: float = 0.0
    manager_id: Optional[int] = None


def build_registry() -> EntityRegistry:
    registry = EntityRegistry()
    registry.register(
        Person,
        "people",
        columns=[
            Column("id", role=IdentifierRole.PRIMARY, auto_generated=True, upsert_ignore=True),
            Column("email", role=IdentifierRole.IDENTIFIER),
            Column("name"),
        ],
    )
    (
        entity(Employee, "employees")
        .extends(Person)
        .column("salary")
        .foreign_key("manager_id", nullable=True)
        .register(registry)
    )
    return registry


def main():
    configure_logging("DEBUG")

    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    persistence = PersistenceEngine.from_config(config, build_registry())

    persistence.execute("""
        CREATE TABLE people (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL
        )
    """)
    persistence.execute("""
        CREATE TABLE employees (
            id INTEGER PRIMARY KEY REFERENCES people(id),
            salary REAL NOT NULL,
            manager_id INTEGER REFERENCES people(id)
        )
    """)

    print("=== Hierarchy Upserts ===\n")

    # Example 1: Insert a batch, keys are generated and written back
    print("1. Insert employees:")
    boss = Employee(email="ada@example.com", name="Ada", salary=120000.0)
    persistence.upsert(boss)
    staff = [
        Employee(email="bob@example.com", name="Bob", salary=80000.0, manager_id=boss.id),
        Employee(email="cy@example.com", name="Cy", salary=75000.0, manager_id=boss.id),
    ]
    persistence.upsert_all(staff)
    for e in [boss] + staff:
        print(f"   {e.name}: id={e.id}")
    print()

    # Example 2: Upsert again, existing rows are updated in place
    print("2. Give Bob a raise:")
    staff[0].salary = 85000.0
    persistence.upsert(staff[0])
    bob = persistence.fetch_one(Employee, "id", staff[0].id)
    print(f"   {bob}\n")

    # Example 3: Fetch by an inherited column and by a foreign key
    print("3. Fetch:")
    print(f"   By email: {persistence.fetch_one(Employee, 'email', 'cy@example.com')}")
    reports = persistence.fetch_many(Employee, "manager_id", boss.id)
    print(f"   Reports of {boss.name}: {[e.name for e in reports]}\n")

    # Example 4: A failing row rolls back the whole batch
    print("4. Failed batch:")
    try:
        persistence.upsert_all([
            Employee(email="dee@example.com", name="Dee", salary=50000.0),
            Employee(email="eve@example.com", name="Eve", salary=None),
        ])
    except StatementError as e:
        print(f"   {e} (cause: {e.__cause__})")
    print(f"   People stored: {len(persistence.query(Person, 'SELECT * FROM people'))}\n")

    # Example 5: Delete removes the sub-table row before the parent row
    print("5. Delete Cy:")
    persistence.delete(staff[1])
    print(f"   Remaining: {[e.name for e in persistence.fetch_many(Employee, 'manager_id', boss.id)]}")

    persistence.close()


if __name__ == "__main__":
    main()
