"""
External catalog search.

This package contains:
- OpenLibrary search client
- Normalization of raw catalog entries into search results
"""

from catalog.client import OpenLibrarySearchClient
from catalog.normalizer import SearchResult, normalize_entry

__all__ = ["OpenLibrarySearchClient", "SearchResult", "normalize_entry"]
