"""
API response models for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from library.models import Book


class BookListResponse(BaseModel):
    """Response model for a user's (filtered) book list."""
    success: bool = Field(True, description="Whether the request succeeded")
    count: int = Field(..., description="Number of books returned")
    books: List[Book] = Field(..., description="List of books")
    search_query: Optional[str] = Field(None, description="Trimmed free-text query, if one was given")

    def to_content(self) -> Dict[str, Any]:
        """JSON body; ``searchQuery`` is only present for searches."""
        content = {
            "success": self.success,
            "count": self.count,
            "books": [book.to_response() for book in self.books],
        }
        if self.search_query is not None:
            content["searchQuery"] = self.search_query
        return content


class BookEnvelope(BaseModel):
    """Response model for single-book operations."""
    success: bool = Field(True, description="Whether the request succeeded")
    message: Optional[str] = Field(None, description="Human-readable outcome")
    book: Optional[Book] = Field(None, description="The affected book")

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"success": self.success}
        if self.message is not None:
            content["message"] = self.message
        if self.book is not None:
            content["book"] = self.book.to_response()
        return content


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = Field(False, description="Always false for errors")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
