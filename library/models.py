"""
Pydantic models for personal library book records.
Implements the Book schema, its create/update payloads and result types.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_READING_STATUS = "to-read"


class ErrorKind(str, Enum):
    """Kinds of failure a library operation can report."""
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    VALIDATION_ERROR = "validation_error"


class Book(BaseModel):
    """
    A book in a user's personal library.

    Field names are snake_case in Python and MongoDB, camelCase on the wire.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = Field(None, description="Store-assigned book identifier")
    user_id: Optional[str] = Field(None, description="Owner of this book")
    title: Optional[str] = Field(None, description="Book title")
    author: Optional[str] = Field(None, description="Author display name")
    isbn: Optional[str] = Field(None, description="ISBN (not validated)")
    publication_year: Optional[int] = Field(None, description="Year of publication")
    publisher: Optional[str] = Field(None, description="Publisher name")
    cover_url: Optional[str] = Field(None, description="Cover image URL")
    reading_status: Optional[str] = Field(
        DEFAULT_READING_STATUS, description="Reading status, e.g. to-read, reading, completed"
    )
    location: Optional[str] = Field(None, description="Physical location, e.g. living room shelf")
    personal_notes: Optional[str] = Field(None, description="User's notes about the book")
    date_added: Optional[datetime] = Field(
        default_factory=datetime.utcnow, description="When the book was added to the library"
    )

    def to_document(self) -> Dict[str, Any]:
        """Convert to a MongoDB document. The id is owned by the store."""
        return self.model_dump(exclude={"id"}, exclude_none=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Book":
        """
        Build a Book from a MongoDB document.

        Args:
            document: Raw document including its ``_id``

        Returns:
            Book instance with ``id`` set from ``_id``
        """
        data = dict(document)
        object_id = data.pop("_id", None)
        if object_id is not None:
            data["id"] = str(object_id)
        # A stored record without a timestamp stays without one
        data.setdefault("date_added", None)
        return cls.model_validate(data)

    def to_response(self) -> Dict[str, Any]:
        """Serialize for API responses (camelCase, JSON-safe)."""
        return self.model_dump(by_alias=True, mode="json")


class BookCreate(BaseModel):
    """Payload for adding a book. Owner, id and timestamp are never taken from it."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    publication_year: Optional[int] = None
    publisher: Optional[str] = None
    cover_url: Optional[str] = None
    reading_status: Optional[str] = DEFAULT_READING_STATUS
    location: Optional[str] = None
    personal_notes: Optional[str] = None

    @field_validator("reading_status")
    @classmethod
    def default_reading_status(cls, v: Optional[str]) -> str:
        """An explicit null status is stored as the default, like an omitted one."""
        return DEFAULT_READING_STATUS if v is None else v

    def to_book(self, user_id: str) -> Book:
        """Create a new Book owned by ``user_id``."""
        return Book(user_id=user_id, **self.model_dump())


class BookUpdate(BaseModel):
    """Partial update payload; only the fields a client sent are written."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    publication_year: Optional[int] = None
    publisher: Optional[str] = None
    cover_url: Optional[str] = None
    reading_status: Optional[str] = None
    location: Optional[str] = None
    personal_notes: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        """Fields explicitly present in the payload, keyed by storage name."""
        return self.model_dump(exclude_unset=True)


class BookAccessResult(BaseModel):
    """Outcome of an owner-guarded operation on a single book."""
    book: Optional[Book] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "BookAccessResult":
        return cls(error=error, message=message)
