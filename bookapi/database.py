"""
Database layer for the FastAPI application.

Books live in a single MongoDB collection keyed by an integer ``_id``.
Ids come from a counter document that is incremented atomically, so an id
is never handed out twice even after the book that held it is deleted.
"""

from typing import Dict, List, Optional, Protocol

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from bookapi.models import Book

logger = structlog.get_logger(__name__)


class BookStoreError(Exception):
    """Raised when the storage backend fails, as opposed to a business outcome."""


class BookStore(Protocol):
    """Persistence contract for Book records."""

    async def list(self) -> List[Book]:
        ...

    async def get(self, book_id: int) -> Optional[Book]:
        ...

    async def create(self, book: Book) -> Book:
        ...

    async def update(self, book: Book) -> None:
        ...

    async def delete(self, book: Book) -> None:
        ...


class MongoBookStore:
    """MongoDB-backed book store."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        books_collection: str = "books",
        counters_collection: str = "counters"
    ):
        self.database = database
        self.books_collection = database[books_collection]
        self.counters_collection = database[counters_collection]
        self.counter_key = books_collection

    @staticmethod
    def _to_document(book: Book) -> Dict:
        return {
            "_id": book.id,
            "title": book.title,
            "author": book.author,
            "year": book.year
        }

    @staticmethod
    def _from_document(doc: Dict) -> Book:
        return Book(id=doc["_id"], title=doc["title"], author=doc["author"], year=doc["year"])

    async def _next_id(self) -> int:
        counter = await self.counters_collection.find_one_and_update(
            {"_id": self.counter_key},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return counter["seq"]

    async def list(self) -> List[Book]:
        """
        Get all books ordered by id.

        Returns:
            List of stored books
        """
        try:
            cursor = self.books_collection.find({}).sort("_id", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to list books", error=str(e))
            raise BookStoreError("Failed to list books") from e

        return [self._from_document(doc) for doc in docs]

    async def get(self, book_id: int) -> Optional[Book]:
        """
        Get a single book by id.

        Args:
            book_id: Book identifier

        Returns:
            Book if found, None otherwise
        """
        try:
            doc = await self.books_collection.find_one({"_id": book_id})
        except PyMongoError as e:
            logger.error("Failed to get book", book_id=book_id, error=str(e))
            raise BookStoreError(f"Failed to get book {book_id}") from e

        if doc is None:
            return None
        return self._from_document(doc)

    async def create(self, book: Book) -> Book:
        """
        Assign an id to a new book and insert it.

        Args:
            book: Book without an id

        Returns:
            The stored book, carrying its new id
        """
        try:
            book_id = await self._next_id()
            stored = book.model_copy(update={"id": book_id})
            await self.books_collection.insert_one(self._to_document(stored))
        except PyMongoError as e:
            logger.error("Failed to insert book", title=book.title, error=str(e))
            raise BookStoreError("Failed to insert book") from e

        logger.debug("Inserted book", book_id=book_id)
        return stored

    async def update(self, book: Book) -> None:
        """
        Overwrite the stored record for book.id.

        A record that no longer exists is left absent; callers check
        existence beforehand.
        """
        try:
            result = await self.books_collection.replace_one(
                {"_id": book.id}, self._to_document(book)
            )
        except PyMongoError as e:
            logger.error("Failed to update book", book_id=book.id, error=str(e))
            raise BookStoreError(f"Failed to update book {book.id}") from e

        if result.matched_count == 0:
            logger.debug("Update matched no book", book_id=book.id)

    async def delete(self, book: Book) -> None:
        """Remove the stored record for book.id."""
        try:
            await self.books_collection.delete_one({"_id": book.id})
        except PyMongoError as e:
            logger.error("Failed to delete book", book_id=book.id, error=str(e))
            raise BookStoreError(f"Failed to delete book {book.id}") from e

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.books_collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
