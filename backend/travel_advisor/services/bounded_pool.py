"""Bounded Pool — run one coroutine per item with a hard cap on in-flight work.

Invariants:
    - Never more than `limit` coroutines in flight at any moment
    - Results are yielded in completion order (not input order)
    - Items are pulled lazily: a new task starts only when a slot frees up
    - If the consumer stops early or is cancelled, every pending task is cancelled

Design Decisions:
    - asyncio.wait(FIRST_COMPLETED) over Semaphore + gather: gather only returns
      once everything is done, we want to stream each result as it lands
    - Exceptions from `fn` propagate to the consumer; callers that need isolation
      wrap `fn` so it returns a value instead of raising (see SyncPipeline.try_sync)
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def bounded_map(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    limit: int,
) -> AsyncIterator[R]:
    """Apply *fn* to each item, at most *limit* at a time, yielding as they finish."""
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    source = iter(items)
    pending: set[asyncio.Task[R]] = set()

    def fill() -> None:
        while len(pending) < limit:
            try:
                item = next(source)
            except StopIteration:
                return
            pending.add(asyncio.ensure_future(fn(item)))

    fill()
    try:
        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                pending.discard(task)
            # Refill before yielding so the pool stays busy while the consumer works
            fill()
            for task in done:
                yield task.result()
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
