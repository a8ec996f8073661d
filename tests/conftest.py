"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId

from api.auth import FirebaseIdentityVerifier, VerificationResult
from library.database import BookRepository
from library.models import Book

OWNER_ID = "user-1"
OTHER_USER_ID = "user-2"
HOBBIT_ID = "65a1f0c2e4b0a1b2c3d4e5f6"


@pytest.fixture
def sample_books():
    """A small library covering present and absent sort keys."""
    return [
        Book(
            id="b1",
            user_id=OWNER_ID,
            title="The Hobbit",
            author="J.R.R. Tolkien",
            isbn="9780547928227",
            publication_year=1937,
            publisher="Houghton Mifflin",
            reading_status="reading",
            location="Living room shelf",
            date_added=datetime(2024, 1, 10, 9, 30),
        ),
        Book(
            id="b2",
            user_id=OWNER_ID,
            title="Nineteen Eighty-Four",
            author="George Orwell",
            isbn="9780451524935",
            publication_year=1949,
            publisher="Signet Classics",
            reading_status="completed",
            location="Bedroom",
            date_added=datetime(2023, 5, 1, 18, 0),
        ),
        Book(
            id="b3",
            user_id=OWNER_ID,
            title="Dune",
            author="Frank Herbert",
            isbn="9780441172719",
            publication_year=1965,
            publisher="Ace",
            reading_status="to-read",
            location="Living room shelf",
            date_added=datetime(2024, 6, 15, 12, 0),
        ),
        Book(
            id="b4",
            user_id=OWNER_ID,
            title="The Republic",
            author="Plato",
            publisher="Penguin Classics",
            reading_status="to-read",
            location="Office",
            date_added=None,
        ),
    ]


@pytest.fixture
def hobbit_document():
    """A stored book document as MongoDB returns it."""
    return {
        "_id": ObjectId(HOBBIT_ID),
        "user_id": OWNER_ID,
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "isbn": "9780547928227",
        "publication_year": 1937,
        "publisher": "Houghton Mifflin",
        "reading_status": "reading",
        "location": "Living room shelf",
        "date_added": datetime(2024, 1, 10, 9, 30),
    }


@pytest.fixture
def mock_repository():
    """Create a mock book repository."""
    repository = AsyncMock(spec=BookRepository)
    repository.create_book.return_value = HOBBIT_ID
    repository.get_book.return_value = None
    repository.find_books_by_owner.return_value = []
    repository.update_book.return_value = True
    repository.delete_book.return_value = True
    repository.health_check.return_value = {"status": "healthy"}
    return repository


@pytest.fixture
def mock_identity_verifier():
    """Identity verifier that accepts any token as OWNER_ID."""
    verifier = Mock(spec=FirebaseIdentityVerifier)
    verifier.verify_token.return_value = VerificationResult(
        user_id=OWNER_ID,
        claims={"uid": OWNER_ID, "email": "reader@example.com", "name": "Bilbo Reader", "email_verified": True},
    )
    verifier.get_user.return_value = {
        "uid": OWNER_ID,
        "email": "reader@example.com",
        "displayName": "Bilbo Reader",
        "emailVerified": True,
        "creationTime": 1700000000000,
    }
    return verifier


@pytest.fixture
def sample_search_response():
    """Trimmed OpenLibrary search.json response."""
    return {
        "numFound": 2,
        "start": 0,
        "docs": [
            {
                "title": "The Hobbit",
                "author_name": ["J.R.R. Tolkien", "Christopher Tolkien"],
                "isbn": ["9780547928227", "0547928227"],
                "first_publish_year": 1937,
                "publisher": ["Houghton Mifflin", "Allen & Unwin"],
                "cover_i": 14627509,
            },
            {
                "title": "The Hobbit: Graphic Novel",
                "author_name": ["Chuck Dixon"],
                "first_publish_year": 1989,
                "cover_i": 8406786,
            },
        ],
    }
