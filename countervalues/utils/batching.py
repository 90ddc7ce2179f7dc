# countervalues/utils/batching.py
"""
Bounded-concurrency batch runner.

Runs an async worker over a list of items with at most `limit` workers in
flight. Results come back in input order, one typed outcome per item:
JobSuccess when the worker returned, JobFailure when it raised. A failing
worker never cancels its siblings.

Usage:
    from countervalues.utils.batching import run_batched

    results = await run_batched(10, jobs, fetch_one)
    for result in results:
        if result.ok:
            use(result.value)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from countervalues.types import JobFailure, JobResult, JobSuccess

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_batched(
        limit: int,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
) -> list[JobResult[T, R]]:
    """
    Run `worker` over `items` with bounded concurrency.

    Args:
        limit: Maximum concurrent workers (>= 1)
        items: Inputs, one worker call each
        worker: Async callable

    Returns:
        One JobSuccess/JobFailure per item, in input order

    Raises:
        ValueError: If limit < 1
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    if not items:
        return []

    semaphore = asyncio.Semaphore(limit)

    async def _run_one(item: T) -> JobResult[T, R]:
        async with semaphore:
            try:
                value = await worker(item)
            except Exception as e:
                return JobFailure(item=item, error=e)
            return JobSuccess(item=item, value=value)

    results = await asyncio.gather(*(_run_one(item) for item in items))

    failed = sum(1 for r in results if not r.ok)
    logger.debug(
        f"Batch finished: {len(results)} items, {failed} failed (limit={limit})"
    )
    return list(results)
