"""HTTP client for the Google Books API with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any, List
import logging
from urllib.parse import quote

from borges.errors import ExternalLookupFailed
from borges.models import SearchResult, Volume
from borges.parse import parse_search_response, parse_volume, deduplicate_results

logger = logging.getLogger(__name__)


class GoogleBooksClient:
    """Client for Google Books API with timeouts, retries, and backoff."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per request
            base_backoff: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def search(
        self,
        query: str,
        max_results: int = 10,
        start_index: int = 0
    ) -> Optional[Dict[str, Any]]:
        """
        Search for volumes.

        Args:
            query: Search query string
            max_results: Maximum results to return (1-40)
            start_index: Pagination offset

        Returns:
            API response JSON or None if all retries failed
        """
        params = {
            "q": query,
            "maxResults": min(max_results, 40),  # API limit
            "startIndex": start_index,
            "printType": "books"
        }

        if self.api_key:
            params["key"] = self.api_key

        return self._make_request_with_retry(self.BASE_URL, params)

    def get_volume(self, volume_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a single volume by its Google Books id.

        Args:
            volume_id: Volume id, usually taken from a search result

        Returns:
            API response JSON or None if the request failed
        """
        params = {}
        if self.api_key:
            params["key"] = self.api_key

        url = f"{self.BASE_URL}/{quote(volume_id, safe='')}"
        return self._make_request_with_retry(url, params)

    def fetch_by_external_id(self, volume_id: str) -> Volume:
        """
        Fetch and parse the metadata of one volume.

        Raises:
            ExternalLookupFailed: If the API call failed or returned no volume
        """
        response = self.get_volume(volume_id)
        if not isinstance(response, dict) or not response:
            raise ExternalLookupFailed(f"Could not fetch volume {volume_id}")

        try:
            volume = parse_volume(response)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExternalLookupFailed(f"Malformed volume {volume_id}: {e}") from e

        if volume is None:
            raise ExternalLookupFailed(f"Volume {volume_id} has no metadata")
        return volume

    def search_books(self, query: str, max_results: int = 10) -> List[SearchResult]:
        """
        Search and parse the results.

        Raises:
            ExternalLookupFailed: If the API call failed
        """
        response = self.search(query, max_results=max_results)
        if not isinstance(response, dict):
            raise ExternalLookupFailed(f"Search failed for query: {query}")

        try:
            results = parse_search_response(response)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExternalLookupFailed(f"Malformed search response: {e}") from e

        return deduplicate_results(results)

    def _make_request_with_retry(
        self,
        url: str,
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request with retry logic.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Response JSON or None if all retries exhausted
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                # Handle different status codes
                if response.status_code == 200:
                    logger.info(f"Success: {response.status_code}")
                    return response.json()

                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 500:
                    # Server error - retryable
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 400:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    return None

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except (requests.exceptions.RequestException, ValueError) as e:
                logger.error(f"Unexpected error: {e}")
                return None

        logger.error(f"All {self.max_retries} attempts failed")
        return None

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
