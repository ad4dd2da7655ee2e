"""
Book service layer.

Sits between the HTTP handlers and the store: turns missing books into
None/False outcomes and maps stored entities onto response shapes.
Storage failures are not caught here.
"""

from typing import List, Optional

import structlog

from bookapi.database import BookStore
from bookapi.models import BookCreateRequest, BookResponse, apply_request, to_book, to_view

logger = structlog.get_logger(__name__)


class BookService:
    """Business operations on books."""

    def __init__(self, store: BookStore):
        self.store = store

    async def list_all(self) -> List[BookResponse]:
        """Get every book, in the order the store returns them."""
        logger.info("Fetching all books")
        books = await self.store.list()
        return [to_view(book) for book in books]

    async def get_by_id(self, book_id: int) -> Optional[BookResponse]:
        """
        Get a single book.

        Args:
            book_id: Book identifier

        Returns:
            BookResponse if found, None otherwise
        """
        logger.info("Fetching book", book_id=book_id)
        book = await self.store.get(book_id)
        if book is None:
            logger.warning("Book not found", book_id=book_id)
            return None
        return to_view(book)

    async def create(self, request: BookCreateRequest) -> BookResponse:
        """
        Persist a new book.

        The request is expected to have passed field validation already.
        """
        logger.info("Creating a new book")
        created = await self.store.create(to_book(request))
        logger.info("Book created successfully", book_id=created.id)
        return to_view(created)

    async def update(self, book_id: int, request: BookCreateRequest) -> bool:
        """
        Replace title, author and year of an existing book.

        Args:
            book_id: Book identifier
            request: New field values

        Returns:
            True if updated, False if no such book exists
        """
        logger.info("Updating book", book_id=book_id)
        book = await self.store.get(book_id)
        if book is None:
            logger.warning("Cannot update, book not found", book_id=book_id)
            return False

        # Not isolated from a concurrent update/delete of the same id
        apply_request(request, book)
        await self.store.update(book)
        logger.info("Book updated successfully", book_id=book_id)
        return True

    async def delete(self, book_id: int) -> bool:
        """
        Delete an existing book.

        Returns:
            True if deleted, False if no such book exists
        """
        logger.info("Deleting book", book_id=book_id)
        book = await self.store.get(book_id)
        if book is None:
            logger.warning("Cannot delete, book not found", book_id=book_id)
            return False

        await self.store.delete(book)
        logger.info("Book deleted successfully", book_id=book_id)
        return True
