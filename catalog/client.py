"""
OpenLibrary search client.
Proxies book searches to the public catalog and normalizes the results.
"""

import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from catalog.normalizer import SearchResult, normalize_entry

logger = structlog.get_logger(__name__)

HEALTH_PROBE_QUERY = "test"


class OpenLibrarySearchClient:
    """
    Search client for the OpenLibrary ``search.json`` endpoint.

    Search failures never reach the caller: they are logged and reported as
    an empty result. Use ``health_check`` to tell an outage from no matches.
    """

    def __init__(
        self,
        base_url: str,
        cover_base_url: str,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: OpenLibrary base URL, e.g. https://openlibrary.org
            cover_base_url: Covers CDN base URL, e.g. https://covers.openlibrary.org
            headers: Extra request headers
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip('/')
        self.cover_base_url = cover_base_url.rstrip('/')
        self.client_config: Dict[str, Any] = {"headers": headers or {}}
        if transport is not None:
            self.client_config["transport"] = transport

    def build_search_url(self, query: str, limit: int) -> str:
        """Spaces become '+'; nothing else in the query is escaped."""
        return f"{self.base_url}/search.json?q={query.replace(' ', '+')}&limit={limit}"

    async def _fetch(self, url: str) -> Any:
        async with httpx.AsyncClient(**self.client_config) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    async def search_books(self, query: Optional[str], limit: int = 10) -> List[SearchResult]:
        """
        Search the catalog.

        Args:
            query: Free-form query, e.g. "The Hobbit" or an ISBN
            limit: Maximum number of results requested

        Returns:
            Normalized results in catalog order, or an empty list when the
            query is blank or the search fails
        """
        if query is None or not query.strip():
            return []

        url = self.build_search_url(query, limit)
        logger.info("Searching OpenLibrary", query=query, limit=limit)

        try:
            data = await self._fetch(url)
        except Exception as e:
            logger.error("OpenLibrary search failed", query=query, error=str(e))
            return []

        if not isinstance(data, dict) or "docs" not in data:
            logger.warning("OpenLibrary response has no docs", query=query)
            return []

        docs = data["docs"]
        if not isinstance(docs, list):
            logger.error("OpenLibrary search failed", query=query, error="docs is not a list")
            return []

        books = [normalize_entry(doc, self.cover_base_url) for doc in docs]
        logger.info("OpenLibrary search completed", query=query, results=len(books))
        return books

    async def search_by_isbn(self, isbn: str) -> Optional[SearchResult]:
        """First catalog match for an ISBN, or None."""
        results = await self.search_books(isbn, 1)
        return results[0] if results else None

    async def health_check(self) -> Dict[str, Any]:
        """
        Probe the catalog directly and report an outage as DOWN.

        Returns:
            Dictionary with status UP or DOWN
        """
        health = {
            "service": "OpenLibrary API",
            "timestamp": int(time.time() * 1000),
        }
        try:
            data = await self._fetch(self.build_search_url(HEALTH_PROBE_QUERY, 1))
            if not isinstance(data, dict) or "docs" not in data:
                raise ValueError("unexpected response shape")
        except Exception as e:
            logger.error("OpenLibrary health check failed", error=str(e))
            health.update(status="DOWN", message=f"Service unavailable: {e}")
            return health

        health.update(status="UP", message="Service is operational")
        return health
