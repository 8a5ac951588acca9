"""
Incremental page accumulator.

Drives a one-per-page generation call across a book as an explicit fold over
page numbers. Page N is generated with the results of pages 1..N-1 as
context, which is what keeps prose and visuals continuous across the book.
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from .errors import PageGenerationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# generate_one(page_number, prior_results) -> result
PageGenerator = Callable[[int, tuple[T, ...]], Awaitable[T]]

# on_page(page_number, result, results_so_far), awaited before the next page starts
PageCallback = Callable[[int, T, tuple[T, ...]], Awaitable[None]]


async def accumulate(
    page_count: int,
    generate_one: PageGenerator,
    *,
    completed: Sequence[T] = (),
    on_page: Optional[PageCallback] = None,
) -> list[T]:
    """
    Generate pages 1..page_count strictly in order.

    Args:
        page_count: Total pages in the book
        generate_one: Async callable (page_number, prior_results) -> result.
            prior_results is an immutable tuple of pages 1..N-1.
        completed: Results already on disk for pages 1..len(completed);
            those pages are not regenerated.
        on_page: Awaited after each new page, before the next call is issued.
            Used to emit progress and persist the checkpoint.

    Returns:
        Ordered list of page_count results

    Raises:
        PageGenerationError: generate_one failed for a page. Later pages are
            not attempted; earlier pages have already gone through on_page.
    """
    if page_count < 0:
        raise ValueError(f"page_count must be >= 0, got {page_count}")
    if len(completed) > page_count:
        raise ValueError(f"{len(completed)} completed pages exceeds page_count {page_count}")

    results: tuple[T, ...] = tuple(completed)
    if results:
        logger.debug(f"Resuming at page {len(results) + 1} of {page_count}")

    for page_number in range(len(results) + 1, page_count + 1):
        try:
            result = await generate_one(page_number, results)
        except Exception as e:
            raise PageGenerationError(page_number, completed_pages=len(results)) from e

        results = (*results, result)
        if on_page is not None:
            await on_page(page_number, result, results)

    return list(results)
