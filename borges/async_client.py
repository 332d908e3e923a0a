"""Async HTTP client for parallel Google Books searches."""
import asyncio
import httpx
from typing import List, Optional, Dict, Any
import logging

from borges.models import SearchResult
from borges.parse import parse_search_response, deduplicate_results

logger = logging.getLogger(__name__)


class AsyncGoogleBooksClient:
    """Async client for parallel book searches."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_concurrent: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            api_key: Optional API key
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def search(
        self,
        query: str,
        max_results: int = 10,
        start_index: int = 0
    ) -> Optional[Dict[str, Any]]:
        """
        Search for volumes asynchronously.

        Args:
            query: Search query
            max_results: Max results
            start_index: Pagination offset

        Returns:
            API response or None
        """
        params = {
            "q": query,
            "maxResults": min(max_results, 40),
            "startIndex": start_index,
            "printType": "books"
        }

        if self.api_key:
            params["key"] = self.api_key

        # Use semaphore to limit concurrency
        async with self.semaphore:
            try:
                logger.info(f"Async request: {query} (index={start_index})")
                response = await self.client.get(self.BASE_URL, params=params)

                if response.status_code == 200:
                    return response.json()
                else:
                    logger.warning(f"Status {response.status_code} for query: {query}")
                    return None

            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Async request failed: {e}")
                return None

    async def search_multiple(
        self,
        queries: List[str],
        max_results: int = 10
    ) -> List[SearchResult]:
        """
        Search several queries in parallel and merge the hits.

        Failed queries are logged and skipped; duplicates across
        queries are dropped.

        Args:
            queries: List of search queries
            max_results: Max results per query

        Returns:
            Merged list of search results
        """
        tasks = [
            self.search(query, max_results)
            for query in queries
        ]

        responses = await asyncio.gather(*tasks)

        results: List[SearchResult] = []
        for response in responses:
            if response is not None:
                results.extend(parse_search_response(response))
        return deduplicate_results(results)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
