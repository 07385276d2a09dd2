"""Bounded-page fetching over unbounded Keycloak collections."""
from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 100

PageFetcher = Callable[[int, int], Awaitable[List[Any]]]


async def fetch_all(
    page_fetcher: PageFetcher,
    offset: int = 0,
    limit: Optional[int] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> List[Any]:
    """Collect the items at logical positions ``[offset, limit)``.

    Pages of at most ``buffer_size`` items are requested sequentially with
    ``page_fetcher(first, max)``. Fetching stops on the first page shorter
    than ``buffer_size`` (nothing left upstream) or once the cursor reaches
    ``limit``. The cursor always advances by ``buffer_size`` so requests stay
    aligned with Keycloak's ``first``/``max`` paging.

    Args:
        page_fetcher: Coroutine function returning one page
        offset: Position of the first item to return
        limit: Exclusive upper position, ``None`` for no ceiling
        buffer_size: Maximum items per request

    Returns:
        Items in upstream order

    Raises:
        ValueError: If buffer_size is not positive or offset is negative
    """
    if buffer_size <= 0:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")
    if offset < 0:
        raise ValueError(f"offset must not be negative, got {offset}")
    if limit is not None and limit <= offset:
        return []

    collected: tuple = ()
    cursor = offset
    while True:
        wanted = buffer_size if limit is None else min(buffer_size, limit - cursor)
        page = list(await page_fetcher(cursor, wanted))[:wanted]
        collected = collected + tuple(page)
        logger.debug("Fetched page first=%d max=%d -> %d item(s), %d total", cursor, wanted, len(page), len(collected))
        cursor += buffer_size
        if len(page) < buffer_size or (limit is not None and cursor >= limit):
            return list(collected)
