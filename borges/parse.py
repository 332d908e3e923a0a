"""Parse and normalize Google Books API responses."""
import logging
import re
from typing import Dict, Any, List, Optional

from borges.models import SearchResult, Volume

logger = logging.getLogger(__name__)

_YEAR_PATTERN = re.compile(r"[0-9]{4}")


def parse_year(published_date: Optional[str]) -> int:
    """
    Convert a published date to a year.

    Google Books dates look like YYYY, YYYY-MM or YYYY-MM-DD. Only the
    first four characters are used; anything that is not a four digit
    year yields 0 so a malformed date never blocks an import.

    Args:
        published_date: Raw ``publishedDate`` value

    Returns:
        The year, or 0 when it cannot be determined
    """
    prefix = (published_date or "")[:4]
    if _YEAR_PATTERN.fullmatch(prefix):
        return int(prefix)
    return 0


def _cover_url(volume_info: Dict[str, Any]) -> Optional[str]:
    image_links = volume_info.get("imageLinks") or {}
    return image_links.get("thumbnail") or image_links.get("smallThumbnail")


def parse_volume(item: Dict[str, Any]) -> Optional[Volume]:
    """
    Parse the volume metadata of a single Google Books item.

    Args:
        item: Item from the Google Books API (search hit or volume lookup)

    Returns:
        Volume object or None if the item has no usable volume info
    """
    if not isinstance(item, dict):
        return None

    volume_info = item.get("volumeInfo")
    if not isinstance(volume_info, dict) or not volume_info.get("title"):
        return None

    authors = volume_info.get("authors") or []
    if isinstance(authors, str):
        authors = [authors]
    elif not isinstance(authors, list):
        authors = []

    # pageCount is missing for many volumes
    page_count = volume_info.get("pageCount") or 0

    return Volume(
        title=volume_info["title"],
        authors=[a for a in authors if isinstance(a, str)],
        page_count=int(page_count),
        published_date=volume_info.get("publishedDate") or "",
        cover_url=_cover_url(volume_info),
    )


def parse_search_result(item: Dict[str, Any]) -> Optional[SearchResult]:
    """
    Parse a single search hit.

    Args:
        item: Single item from a Google Books search response

    Returns:
        SearchResult or None if the item has no id or title
    """
    if not isinstance(item, dict):
        return None

    external_id = item.get("id")
    if not external_id:
        return None

    volume = parse_volume(item)
    if volume is None:
        logger.warning(f"Skipping item without volume info: {external_id}")
        return None

    return SearchResult(
        external_id=external_id,
        title=volume.title,
        authors=volume.authors,
        pages=volume.page_count,
        year=parse_year(volume.published_date),
        image_url=volume.cover_url,
    )


def parse_search_response(response_json: Dict[str, Any]) -> List[SearchResult]:
    """
    Parse a full search response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of SearchResult objects (empty if no items found)
    """
    results = []

    for item in response_json.get("items") or []:
        result = parse_search_result(item)
        if result:
            results.append(result)

    return results


def deduplicate_results(results: List[SearchResult]) -> List[SearchResult]:
    """Remove duplicate search hits by external id, keeping the first."""
    seen_ids = set()
    unique_results = []

    for result in results:
        if result.external_id not in seen_ids:
            seen_ids.add(result.external_id)
            unique_results.append(result)

    return unique_results
