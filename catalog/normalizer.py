"""
Normalization of OpenLibrary search entries.

Raw ``docs`` entries are loosely typed. They are first decoded into a
``CatalogEntry`` whose fields are typed and optional; a missing key, a JSON
null and a value of the wrong type all decode to None. The search result is
then built from the decoded fields only.
"""

from numbers import Number
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _first_element(value: Any) -> Optional[str]:
    """Element 0 of a non-empty list, as a string."""
    if isinstance(value, list) and value and value[0] is not None:
        return str(value[0])
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    """Truncate a numeric value to int; anything else is absent."""
    if not _is_number(value):
        return None
    try:
        return int(value)
    except (ValueError, OverflowError, TypeError):
        return None


class CatalogEntry(BaseModel):
    """Typed view of one raw catalog entry."""
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    first_publish_year: Optional[int] = None
    publisher: Optional[str] = None
    cover_id: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "CatalogEntry":
        """
        Decode a raw entry. Never raises; non-mapping input decodes empty.

        Args:
            raw: One element of the search response ``docs`` array

        Returns:
            CatalogEntry with every unusable field set to None
        """
        if not isinstance(raw, Mapping):
            return cls()

        title = raw.get("title")
        return cls(
            title=title if isinstance(title, str) else None,
            author=_first_element(raw.get("author_name")),
            isbn=_first_element(raw.get("isbn")),
            first_publish_year=_as_int(raw.get("first_publish_year")),
            publisher=_first_element(raw.get("publisher")),
            cover_id=_as_int(raw.get("cover_i")),
        )


class SearchResult(BaseModel):
    """A book found in the external catalog. Not persisted."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = Field(None, description="Book title")
    author: Optional[str] = Field(None, description="First listed author")
    isbn: Optional[str] = Field(None, description="First listed ISBN")
    publication_year: Optional[int] = Field(None, description="First publication year")
    publisher: Optional[str] = Field(None, description="First listed publisher")
    cover_url: Optional[str] = Field(None, description="Medium-size cover image URL")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def build_cover_url(cover_base_url: str, isbn: Optional[str], cover_id: Optional[int]) -> Optional[str]:
    """
    Build a medium cover image URL.

    The ISBN form is preferred; the cover-id form is used only when there is
    no ISBN.
    """
    if isbn:
        return f"{cover_base_url}/b/isbn/{isbn}-M.jpg"
    if cover_id is not None:
        return f"{cover_base_url}/b/id/{cover_id}-M.jpg"
    return None


def normalize_entry(raw: Any, cover_base_url: str) -> SearchResult:
    """
    Map one raw catalog entry to a SearchResult.

    Args:
        raw: Raw ``docs`` entry
        cover_base_url: Base URL of the covers CDN, without trailing slash

    Returns:
        Normalized search result
    """
    entry = CatalogEntry.from_raw(raw)
    return SearchResult(
        title=entry.title,
        author=entry.author,
        isbn=entry.isbn,
        publication_year=entry.first_publish_year,
        publisher=entry.publisher,
        cover_url=build_cover_url(cover_base_url, entry.isbn, entry.cover_id),
    )
