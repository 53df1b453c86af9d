"""
Example 02: Repository Pattern and Many-to-Many

This example demonstrates a typed repository with a custom finder and a
many-to-many fetch through an association table.
"""

from row_persist import ConnectionConfig, EntityRegistry, PersistenceEngine, entity
from row_persist.repository import Repository
from dataclasses import dataclass
from typing import Optional


@dataclass
class Author:
    author_id: Optional[int] = None
    name: str = ""


@dataclass
class Book:
    book_id: Optional[int] = None
    isbn: str = ""
    title: str = ""


class BookRepository(Repository[Book]):
    """Repository for Book entities"""

    def __init__(self, persistence: PersistenceEngine):
        super().__init__(persistence, Book)

    def by_author(self, author_id: int) -> list[Book]:
        return self.persistence.fetch_many_to_many(
            Book, "book_authors", "author_id", "book_id", author_id
        )

    def search(self, text: str) -> list[Book]:
        return self.persistence.query(
            Book, "SELECT * FROM books WHERE title LIKE :pattern", {"pattern": f"%{text}%"}
        )


def main():
    registry = EntityRegistry()
    entity(Author, "authors").primary_key("author_id", auto_generated=True).identifier(
        "name"
    ).register(registry)
    entity(Book, "books").primary_key("book_id", auto_generated=True).identifier(
        "isbn"
    ).auto_fields().register(registry)

    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    persistence = PersistenceEngine.from_config(config, registry)
    persistence.execute(
        "CREATE TABLE authors (author_id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT UNIQUE)"
    )
    persistence.execute(
        "CREATE TABLE books ("
        " book_id INTEGER PRIMARY KEY AUTOINCREMENT, isbn TEXT UNIQUE, title TEXT)"
    )
    persistence.execute(
        "CREATE TABLE book_authors ("
        " author_id INTEGER REFERENCES authors(author_id),"
        " book_id INTEGER REFERENCES books(book_id),"
        " PRIMARY KEY (author_id, book_id))"
    )

    authors = Repository(persistence, Author)
    books = BookRepository(persistence)

    print("=== Repository Pattern ===\n")

    print("1. Save authors and books:")
    knuth = authors.save(Author(name="Knuth"))
    saved = books.save_all([
        Book(isbn="0-201-03801-3", title="Fundamental Algorithms"),
        Book(isbn="0-201-03802-1", title="Seminumerical Algorithms"),
        Book(isbn="0-262-03384-4", title="Introduction to Algorithms"),
    ])
    for b in saved:
        print(f"   #{b.book_id} {b.title}")
    print()

    for b in saved[:2]:
        persistence.execute(
            "INSERT INTO book_authors (author_id, book_id) VALUES (?, ?)",
            [knuth.author_id, b.book_id],
        )

    print("2. Books by Knuth:")
    for b in books.by_author(knuth.author_id):
        print(f"   - {b.title}")
    print()

    print("3. Search 'Intro':")
    print(f"   {books.search('Intro')}\n")

    print("4. Lookup by id:")
    print(f"   {books.get(saved[2].book_id)}")

    persistence.close()


if __name__ == "__main__":
    main()
