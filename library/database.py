"""
MongoDB storage for library book records.
Handles connection, indexing, and CRUD operations.
"""

from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure

logger = structlog.get_logger(__name__)


class BookRepository:
    """
    Async MongoDB repository for book documents.

    Every book lives in one collection and carries its owner in ``user_id``,
    which is indexed for equality queries.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str):
        """
        Initialize the repository.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the owner index used by every listing."""
        try:
            await self.collection.create_index("user_id")
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    @staticmethod
    def _object_id(book_id: str) -> Optional[ObjectId]:
        # ObjectId(None) would mint a fresh id
        if book_id is None:
            return None
        try:
            return ObjectId(book_id)
        except (InvalidId, TypeError):
            return None

    async def create_book(self, document: Dict[str, Any]) -> str:
        """
        Insert a new book document.

        Args:
            document: Book fields without an ``_id``

        Returns:
            Identifier assigned by the store
        """
        try:
            result = await self.collection.insert_one(dict(document))
            book_id = str(result.inserted_id)
            logger.info("Book document created", book_id=book_id, user_id=document.get("user_id"))
            return book_id
        except Exception as e:
            logger.error("Failed to create book", error=str(e))
            raise

    async def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a book document by id.

        Args:
            book_id: Store identifier

        Returns:
            Book document or None if not found (including malformed ids)
        """
        object_id = self._object_id(book_id)
        if object_id is None:
            logger.debug("Malformed book id", book_id=book_id)
            return None

        try:
            document = await self.collection.find_one({"_id": object_id})
            if document is None:
                logger.debug("Book document not found", book_id=book_id)
            return document
        except Exception as e:
            logger.error("Failed to get book", book_id=book_id, error=str(e))
            raise

    async def find_books_by_owner(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Get every book owned by a user, in the store's natural order.

        Args:
            user_id: Owner identifier

        Returns:
            List of book documents
        """
        try:
            cursor = self.collection.find({"user_id": user_id})
            documents = [document async for document in cursor]
            logger.debug("Retrieved books by owner", user_id=user_id, count=len(documents))
            return documents
        except Exception as e:
            logger.error("Failed to query books by owner", user_id=user_id, error=str(e))
            raise

    async def update_book(self, book_id: str, update_data: Dict[str, Any]) -> bool:
        """
        Set the given fields on a book.

        Args:
            book_id: Store identifier
            update_data: Fields to set

        Returns:
            bool: True if the book exists, False otherwise
        """
        object_id = self._object_id(book_id)
        if object_id is None:
            return False
        if not update_data:
            return await self.collection.count_documents({"_id": object_id}, limit=1) > 0

        try:
            result = await self.collection.update_one(
                {"_id": object_id},
                {"$set": update_data}
            )
            if result.matched_count > 0:
                logger.info("Book document updated", book_id=book_id, fields=sorted(update_data))
                return True
            logger.warning("Book not found for update", book_id=book_id)
            return False
        except Exception as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book.

        Args:
            book_id: Store identifier

        Returns:
            bool: True if deleted, False if not found
        """
        object_id = self._object_id(book_id)
        if object_id is None:
            return False

        try:
            result = await self.collection.delete_one({"_id": object_id})
            if result.deleted_count > 0:
                logger.info("Book document deleted", book_id=book_id)
                return True
            logger.warning("Book not found for deletion", book_id=book_id)
            return False
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.collection.estimated_document_count()
            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
