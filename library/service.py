"""
Service layer for a user's personal library.
"""

from typing import Any, Dict, List, Mapping

import structlog
from pydantic import ValidationError

from library.database import BookRepository
from library.models import Book, BookAccessResult, BookCreate, BookUpdate, ErrorKind
from library.ownership import check_ownership, strip_owner
from library.query import BookQuery, apply_query

logger = structlog.get_logger(__name__)

ACCESS_MESSAGES = {
    ErrorKind.NOT_FOUND: "Book not found",
    ErrorKind.FORBIDDEN: "Unauthorized access to book",
}


class LibraryService:
    """Owner-scoped operations on book records."""

    def __init__(self, repository: BookRepository):
        self.repository = repository

    async def add_book(self, user_id: str, payload: BookCreate) -> Book:
        """
        Add a book to the caller's library.

        Args:
            user_id: Authenticated caller, recorded as the owner
            payload: Book fields supplied by the client

        Returns:
            The stored book including its new id
        """
        book = payload.to_book(user_id)
        book.id = await self.repository.create_book(book.to_document())
        logger.info("Book added", book_id=book.id, user_id=user_id)
        return book

    async def list_books(self, user_id: str, query: BookQuery) -> List[Book]:
        """
        List the caller's books, filtered and sorted by ``query``.

        Args:
            user_id: Authenticated caller
            query: Optional filter and sort criteria

        Returns:
            Matching books
        """
        documents = await self.repository.find_books_by_owner(user_id)
        books = [Book.from_document(document) for document in documents]
        result = apply_query(books, query)
        logger.debug("Books listed", user_id=user_id, total=len(books), matched=len(result))
        return result

    async def _guarded(self, user_id: str, book_id: str):
        document = await self.repository.get_book(book_id)
        error = check_ownership(document, user_id)
        if error is not None:
            logger.warning("Book access denied", book_id=book_id, user_id=user_id, reason=error.value)
            return None, BookAccessResult.failure(error, ACCESS_MESSAGES[error])
        return document, None

    async def get_book(self, user_id: str, book_id: str) -> BookAccessResult:
        """Get one of the caller's books."""
        document, denied = await self._guarded(user_id, book_id)
        if denied:
            return denied
        return BookAccessResult(book=Book.from_document(document))

    async def update_book(self, user_id: str, book_id: str, updates: Mapping[str, Any]) -> BookAccessResult:
        """
        Apply a partial update to one of the caller's books.

        The owner field is always removed from ``updates`` first. Existence
        and ownership are checked next, then the payload is validated as a
        whole before anything is written.

        Args:
            user_id: Authenticated caller
            book_id: Book to update
            updates: Client-supplied fields (wire or storage names)

        Returns:
            Result carrying the updated book or an error kind
        """
        updates = strip_owner(updates)

        document, denied = await self._guarded(user_id, book_id)
        if denied:
            return denied

        try:
            changes: Dict[str, Any] = BookUpdate.model_validate(updates).to_changes()
        except ValidationError as e:
            return BookAccessResult.failure(ErrorKind.VALIDATION_ERROR, f"Invalid book update: {e}")

        if not await self.repository.update_book(book_id, changes):
            return BookAccessResult.failure(ErrorKind.NOT_FOUND, ACCESS_MESSAGES[ErrorKind.NOT_FOUND])

        document.update(changes)
        return BookAccessResult(book=Book.from_document(document))

    async def delete_book(self, user_id: str, book_id: str) -> BookAccessResult:
        """Delete one of the caller's books."""
        document, denied = await self._guarded(user_id, book_id)
        if denied:
            return denied

        if not await self.repository.delete_book(book_id):
            return BookAccessResult.failure(ErrorKind.NOT_FOUND, ACCESS_MESSAGES[ErrorKind.NOT_FOUND])
        return BookAccessResult(book=Book.from_document(document))

    async def health_check(self) -> Dict[str, Any]:
        return await self.repository.health_check()
