"""
Cursor pagination helpers for Up's JSON:API list endpoints.

Each page looks like {"data": [...], "links": {"prev": url|None, "next": url|None}}
and the cursor for the next page is the page[after] parameter of links.next.
Up's links.prev uses page[before], so prevCursor is only set when a
previous link happens to carry page[after].
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .up.client import extract_cursor

logger = logging.getLogger(__name__)

# Up's maximum page size is 100, so this allows for 10,000 items per walk.
DEFAULT_MAX_PAGES = 100

PageFetcher = Callable[[Optional[str]], Awaitable[Dict[str, Any]]]


class PaginationLimitError(Exception):
    """The server kept returning next links past the page budget."""


def _links(page: Dict[str, Any]) -> Dict[str, Any]:
    return page.get("links") or {}


async def fetch_all_pages(fetch_page: PageFetcher, max_pages: int = DEFAULT_MAX_PAGES) -> List[Any]:
    """
    Walk a paginated listing to the end and return every item in page order.

    Pages are fetched one after another; each request needs the cursor from
    the page before it.

    Raises:
        PaginationLimitError: if more than max_pages pages would be fetched.
    """
    items: List[Any] = []
    cursor: Optional[str] = None
    pages = 0

    while True:
        if pages >= max_pages:
            raise PaginationLimitError(
                f"Pagination stopped after {max_pages} pages; the server is still returning a next link"
            )
        page = await fetch_page(cursor)
        pages += 1
        items.extend(page.get("data") or [])

        cursor = extract_cursor(_links(page).get("next"))
        if cursor is None:
            break

    logger.debug("Fetched %d items across %d page(s)", len(items), pages)
    return items


def with_pagination(response: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a paged response with nextCursor/prevCursor pulled out of its links."""
    links = _links(response)
    return {
        **response,
        "links": links,
        "pagination": {
            "nextCursor": extract_cursor(links.get("next")),
            "prevCursor": extract_cursor(links.get("prev")),
        },
    }
