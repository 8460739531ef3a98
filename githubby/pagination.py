"""Page aggregation for page-based remote listings.

Walks a listing one page at a time with an explicit cursor and collects
the items into a single ordered list, optionally capped at a total count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Optional, TypeVar

from .errors import EmptyResultError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest page GitHub will serve for list endpoints
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    """One fetched page of a listing.

    ``next_page`` is the cursor reported by the remote, 0 when there are
    no further pages.
    """

    items: list[T]
    page: int
    next_page: int = 0


def page_size_for(limit: Optional[int], max_page_size: int = MAX_PAGE_SIZE) -> int:
    """Return the per-page size to request for the given limit."""
    if limit and 0 < limit < max_page_size:
        return limit
    return max_page_size


def iter_pages(
    fetch_page: Callable[[int, int], Page[T]],
    limit: Optional[int] = None,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Iterator[Page[T]]:
    """Yield pages of a listing until it is exhausted or the limit is met.

    Args:
        fetch_page: Callable taking ``(page, per_page)`` and returning a Page.
            It signals failure by raising FetchError.
        limit: Maximum number of items wanted, ``None`` or ``<= 0`` for all
        max_page_size: Largest page size the remote accepts

    Yields:
        Pages in the order the remote serves them
    """
    if limit is not None and limit <= 0:
        limit = None
    per_page = page_size_for(limit, max_page_size)
    cursor = 1
    fetched = 0

    while True:
        logger.debug(f"Fetching page {cursor} ({per_page} per page)")
        page = fetch_page(cursor, per_page)
        fetched += len(page.items)
        yield page

        remaining = max(0, limit - fetched) if limit is not None else None
        if page.next_page <= cursor:
            break
        if remaining is not None and remaining <= 0:
            logger.debug(f"Limit of {limit} reached after page {cursor}")
            break

        logger.debug(f"Moving from page {cursor} to {page.next_page}")
        cursor = page.next_page


def aggregate(
    fetch_page: Callable[[int, int], Page[T]],
    limit: Optional[int] = None,
    max_page_size: int = MAX_PAGE_SIZE,
    allow_empty: bool = False,
) -> list[T]:
    """Collect every item of a paginated listing into one ordered list.

    Any FetchError raised by ``fetch_page`` propagates and no partial
    result is returned.

    Args:
        fetch_page: Callable taking ``(page, per_page)`` and returning a Page
        limit: Maximum number of items to return, ``None`` or ``<= 0`` for all
        max_page_size: Largest page size the remote accepts
        allow_empty: Return an empty list instead of raising when nothing
            was found

    Returns:
        All items, in page order, truncated to ``limit``

    Raises:
        FetchError: If any page could not be fetched
        EmptyResultError: If the listing is empty and ``allow_empty`` is False

    Example:
        >>> pages = {1: Page([1, 2], 1, 2), 2: Page([3], 2, 0)}
        >>> aggregate(lambda page, per_page: pages[page])
        [1, 2, 3]
    """
    items: list[T] = []
    for page in iter_pages(fetch_page, limit, max_page_size):
        items.extend(page.items)

    if limit is not None and limit > 0:
        items = items[:limit]

    if not items and not allow_empty:
        raise EmptyResultError("Listing returned no results")

    return items
