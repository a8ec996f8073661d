"""
Tests for the library service.
"""

import pytest
from bson import ObjectId

from library.models import BookCreate, ErrorKind
from library.query import BookQuery
from library.service import LibraryService

HOBBIT_ID = "65a1f0c2e4b0a1b2c3d4e5f6"


@pytest.fixture
def service(mock_repository):
    return LibraryService(mock_repository)


class TestAddBook:
    """Test cases for adding books."""

    @pytest.mark.asyncio
    async def test_add_book(self, service, mock_repository):
        book = await service.add_book("user-1", BookCreate(title="The Hobbit", author="J.R.R. Tolkien"))

        assert book.id == HOBBIT_ID
        assert book.user_id == "user-1"
        assert book.reading_status == "to-read"
        document = mock_repository.create_book.call_args.args[0]
        assert document["user_id"] == "user-1"
        assert document["title"] == "The Hobbit"
        assert "id" not in document
        assert "date_added" in document

    @pytest.mark.asyncio
    async def test_add_book_storage_failure_propagates(self, service, mock_repository):
        mock_repository.create_book.side_effect = RuntimeError("write failed")
        with pytest.raises(RuntimeError):
            await service.add_book("user-1", BookCreate(title="Dune"))


class TestListBooks:
    """Test cases for listing books."""

    @pytest.mark.asyncio
    async def test_list_books_scoped_to_owner(self, service, mock_repository, hobbit_document):
        mock_repository.find_books_by_owner.return_value = [hobbit_document]

        books = await service.list_books("user-1", BookQuery())

        mock_repository.find_books_by_owner.assert_awaited_once_with("user-1")
        assert [book.title for book in books] == ["The Hobbit"]
        assert books[0].id == HOBBIT_ID

    @pytest.mark.asyncio
    async def test_list_books_applies_query(self, service, mock_repository, hobbit_document):
        dune = {"_id": ObjectId(), "user_id": "user-1", "title": "Dune", "author": "Frank Herbert"}
        mock_repository.find_books_by_owner.return_value = [hobbit_document, dune]

        books = await service.list_books("user-1", BookQuery(sort_by="author"))
        assert [book.title for book in books] == ["Dune", "The Hobbit"]

        books = await service.list_books("user-1", BookQuery(search="herbert"))
        assert [book.title for book in books] == ["Dune"]

    @pytest.mark.asyncio
    async def test_list_books_empty(self, service):
        assert await service.list_books("user-1", BookQuery()) == []


class TestGetBook:
    """Test cases for reading a single book."""

    @pytest.mark.asyncio
    async def test_get_own_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.get_book("user-1", HOBBIT_ID)

        assert result.ok
        assert result.book.title == "The Hobbit"

    @pytest.mark.asyncio
    async def test_get_missing_book(self, service):
        result = await service.get_book("user-1", HOBBIT_ID)
        assert result.error == ErrorKind.NOT_FOUND
        assert result.message == "Book not found"

    @pytest.mark.asyncio
    async def test_get_other_users_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.get_book("user-2", HOBBIT_ID)

        assert result.error == ErrorKind.FORBIDDEN
        assert result.message == "Unauthorized access to book"
        assert result.book is None


class TestUpdateBook:
    """Test cases for updating books."""

    @pytest.mark.asyncio
    async def test_update_own_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.update_book("user-1", HOBBIT_ID, {"readingStatus": "completed"})

        assert result.ok
        assert result.book.reading_status == "completed"
        mock_repository.update_book.assert_awaited_once_with(HOBBIT_ID, {"reading_status": "completed"})

    @pytest.mark.asyncio
    async def test_update_cannot_change_owner(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.update_book(
            "user-1", HOBBIT_ID, {"userId": "user-2", "user_id": "user-2", "location": "Attic"}
        )

        assert result.ok
        assert result.book.user_id == "user-1"
        mock_repository.update_book.assert_awaited_once_with(HOBBIT_ID, {"location": "Attic"})

    @pytest.mark.asyncio
    async def test_update_other_users_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.update_book("user-2", HOBBIT_ID, {"title": "Mine now"})

        assert result.error == ErrorKind.FORBIDDEN
        mock_repository.update_book.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_book(self, service, mock_repository):
        result = await service.update_book("user-1", HOBBIT_ID, {"title": "Dune"})

        assert result.error == ErrorKind.NOT_FOUND
        mock_repository.update_book.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_book_with_invalid_payload(self, service):
        result = await service.update_book("user-1", HOBBIT_ID, {"publicationYear": "soon"})
        assert result.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_invalid_payload(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.update_book("user-1", HOBBIT_ID, {"publicationYear": "soon"})

        assert result.error == ErrorKind.VALIDATION_ERROR
        assert result.message.startswith("Invalid book update")
        mock_repository.update_book.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_deleted_concurrently(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document
        mock_repository.update_book.return_value = False

        result = await service.update_book("user-1", HOBBIT_ID, {"title": "Dune"})

        assert result.error == ErrorKind.NOT_FOUND


class TestDeleteBook:
    """Test cases for deleting books."""

    @pytest.mark.asyncio
    async def test_delete_own_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.delete_book("user-1", HOBBIT_ID)

        assert result.ok
        mock_repository.delete_book.assert_awaited_once_with(HOBBIT_ID)

    @pytest.mark.asyncio
    async def test_delete_other_users_book(self, service, mock_repository, hobbit_document):
        mock_repository.get_book.return_value = hobbit_document

        result = await service.delete_book("user-2", HOBBIT_ID)

        assert result.error == ErrorKind.FORBIDDEN
        mock_repository.delete_book.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_missing_book(self, service, mock_repository):
        result = await service.delete_book("user-1", HOBBIT_ID)

        assert result.error == ErrorKind.NOT_FOUND
        mock_repository.delete_book.assert_not_awaited()


@pytest.mark.asyncio
async def test_health_check_delegates_to_repository(service, mock_repository):
    assert await service.health_check() == {"status": "healthy"}
    mock_repository.health_check.assert_awaited_once()
