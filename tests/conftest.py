"""
Pytest configuration and shared fixtures.
"""

import base64
import json

import pytest
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from bookapi.models import Book, BookCreateRequest
from bookapi.service import BookService


class InMemoryBookStore:
    """Dict-backed BookStore used to drive the service without MongoDB."""

    def __init__(self):
        self.books: Dict[int, Book] = {}
        self.last_id = 0

    async def list(self) -> List[Book]:
        return [self.books[book_id].model_copy() for book_id in sorted(self.books)]

    async def get(self, book_id: int) -> Optional[Book]:
        book = self.books.get(book_id)
        return book.model_copy() if book else None

    async def create(self, book: Book) -> Book:
        self.last_id += 1
        stored = book.model_copy(update={"id": self.last_id})
        self.books[stored.id] = stored
        return stored.model_copy()

    async def update(self, book: Book) -> None:
        if book.id in self.books:
            self.books[book.id] = book.model_copy()

    async def delete(self, book: Book) -> None:
        self.books.pop(book.id, None)


@pytest.fixture
def memory_store():
    """Create an empty in-memory book store."""
    return InMemoryBookStore()


@pytest.fixture
def book_service(memory_store):
    """Create a book service over the in-memory store."""
    return BookService(memory_store)


@pytest.fixture
def sample_book_request():
    """Create a valid book request."""
    return BookCreateRequest(title="Clean Code", author="Robert C. Martin", year=2008)


@pytest.fixture
def sample_book():
    """Create a stored book."""
    return Book(id=1, title="Refactoring", author="Martin Fowler", year=1999)


@pytest.fixture
def mock_database():
    """Create a mock Motor database with books and counters collections."""
    books = AsyncMock()
    counters = AsyncMock()
    collections = {"books": books, "counters": counters}

    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections[name]
    database.command = AsyncMock(return_value={"ok": 1})
    database.books = books
    database.counters = counters
    return database


@pytest.fixture
def forge_token():
    """Assemble a compact JWT with an arbitrary header and a bogus signature."""
    def build(header, payload, signature=b"AAAA"):
        segments = [json.dumps(header).encode(), json.dumps(payload).encode(), signature]
        return ".".join(base64.urlsafe_b64encode(s).rstrip(b"=").decode() for s in segments)
    return build
