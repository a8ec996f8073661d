"""
Filtering and sorting of a user's books.

Criteria are applied in a fixed order, each stage narrowing the output of
the previous one:

1. free-text search over title, author, ISBN and publisher
2. reading status (exact, case-insensitive)
3. author (substring, case-insensitive)
4. location (substring, case-insensitive)
5. optional sort by title, author last name or date added
"""

from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field, validator

from library.models import Book

SORT_TITLE = "title"
SORT_AUTHOR = "author"
SORT_DATE_ADDED = "dateadded"
ORDER_DESC = "desc"


class BookQuery(BaseModel):
    """Optional criteria for listing books. Blank values count as absent."""
    search: Optional[str] = Field(None, description="Free-text search")
    status: Optional[str] = Field(None, description="Filter by reading status")
    author: Optional[str] = Field(None, description="Filter by author")
    location: Optional[str] = Field(None, description="Filter by location")
    sort_by: Optional[str] = Field(None, description="Sort field (title, author, dateAdded)")
    order: Optional[str] = Field(None, description="Sort order (asc, desc)")

    @validator('search', 'status', 'author', 'location', 'sort_by', 'order')
    def blank_to_none(cls, v):
        """Trim criteria and treat blank ones as not supplied."""
        if v is None:
            return None
        v = v.strip()
        return v or None


def filter_by_search(books: List[Book], query: str) -> List[Book]:
    """Keep books whose title, author, ISBN or publisher contains ``query``."""
    needle = query.lower()
    return [
        book for book in books
        if any(
            value is not None and needle in value.lower()
            for value in (book.title, book.author, book.isbn, book.publisher)
        )
    ]


def filter_by_status(books: List[Book], status: str) -> List[Book]:
    wanted = status.lower()
    return [
        book for book in books
        if book.reading_status is not None and book.reading_status.lower() == wanted
    ]


def filter_by_author(books: List[Book], author: str) -> List[Book]:
    needle = author.lower()
    return [book for book in books if book.author is not None and needle in book.author.lower()]


def filter_by_location(books: List[Book], location: str) -> List[Book]:
    needle = location.lower()
    return [book for book in books if book.location is not None and needle in book.location.lower()]


def extract_last_name(author: Optional[str]) -> Optional[str]:
    """
    Sort key for an author display name.

    Returns the last whitespace-delimited token, lower-cased. A single-word
    name is returned whole. Missing or blank names give None.
    """
    if author is None or not author.strip():
        return None
    return author.split()[-1].lower()


def _title_key(book: Book) -> str:
    return book.title.lower() if book.title is not None else ""


def _author_key(book: Book) -> Optional[str]:
    return extract_last_name(book.author)


def _date_added_key(book: Book) -> Any:
    return book.date_added


def _normalize_sort_field(sort_by: str) -> str:
    return sort_by.lower().replace("-", "").replace("_", "")


def sort_books(books: List[Book], sort_by: str, order: Optional[str] = None) -> List[Book]:
    """
    Sort books by the given field.

    Unknown fields sort by title. Books whose key is absent are placed after
    all others in both ascending and descending order.

    Args:
        books: Books to sort
        sort_by: title, author or dateAdded
        order: "desc" for descending, anything else is ascending

    Returns:
        New sorted list
    """
    key_functions = {
        SORT_TITLE: _title_key,
        SORT_AUTHOR: _author_key,
        SORT_DATE_ADDED: _date_added_key,
    }
    key: Callable[[Book], Any] = key_functions.get(_normalize_sort_field(sort_by), _title_key)
    descending = order is not None and order.lower() == ORDER_DESC

    present = [book for book in books if key(book) is not None]
    absent = [book for book in books if key(book) is None]
    present.sort(key=key, reverse=descending)
    return present + absent


def apply_query(books: List[Book], query: BookQuery) -> List[Book]:
    """
    Run the filter stages and the optional sort.

    Stages whose criterion is absent pass their input through unchanged.
    Without a sort key the input order is kept.
    """
    result = list(books)

    if query.search:
        result = filter_by_search(result, query.search)
    if query.status:
        result = filter_by_status(result, query.status)
    if query.author:
        result = filter_by_author(result, query.author)
    if query.location:
        result = filter_by_location(result, query.location)
    if query.sort_by:
        result = sort_books(result, query.sort_by, query.order)

    return result
