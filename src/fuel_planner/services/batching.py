"""Bounded-batch concurrent fetching for rate-limited APIs."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def gather_in_batches(
    items: Sequence[T],
    fetch: Callable[[T], Awaitable[R]],
    fallback: Callable[[T], R],
    batch_size: int = 3,
    delay: float = 0.1,
) -> List[R]:
    """
    Run ``fetch`` over ``items`` a few at a time.

    Requests within a batch settle independently: a failing fetch is
    logged and replaced by ``fallback(item)`` without cancelling its
    siblings. Results keep the order of ``items``.

    Args:
        items: Inputs to fetch for
        fetch: Coroutine function producing one result per item
        fallback: Result to use when a fetch raises
        batch_size: Maximum concurrent requests
        delay: Seconds to wait between batches

    Returns:
        One result per item
    """
    batch_size = max(batch_size, 1)
    results: List[R] = []

    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        outcomes = await asyncio.gather(*(fetch(item) for item in batch), return_exceptions=True)

        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Fetch failed for {item!r}: {outcome}")
                results.append(fallback(item))
            else:
                results.append(outcome)

        if start + batch_size < len(items):
            await asyncio.sleep(delay)

    return results
