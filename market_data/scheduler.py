"""Bounded-concurrency batch runner for per-symbol fetches."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

ProgressCallback = Callable[[int, int], None]


@dataclass
class ItemOutcome(Generic[T, R]):
    """What happened to one work item."""
    item: T
    result: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


@dataclass
class BatchResult(Generic[T, R]):
    """Non-None results plus one outcome per item, both in completion order."""
    results: List[R] = field(default_factory=list)
    outcomes: List[ItemOutcome[T, R]] = field(default_factory=list)

    @property
    def failed(self) -> List[ItemOutcome[T, R]]:
        return [o for o in self.outcomes if o.error is not None]


async def process_with_concurrency(
    items: Sequence[T],
    concurrency_limit: int,
    func: Callable[[T], Awaitable[Optional[R]]],
    progress_callback: Optional[ProgressCallback] = None
) -> BatchResult[T, R]:
    """
    Run ``func`` once per item with at most ``concurrency_limit`` in flight.

    None results and exceptions are dropped from ``results`` without stopping
    the other items; both are still visible in ``outcomes``. The progress
    callback gets ``(processed, total)`` once per finished item.

    Args:
        items: Work items (symbols)
        concurrency_limit: Max concurrent calls; 0 means do nothing
        func: Async work function
        progress_callback: Optional ``(processed, total)`` callback

    Returns:
        BatchResult in completion order
    """
    batch: BatchResult[T, R] = BatchResult()
    total = len(items)
    if total == 0 or concurrency_limit <= 0:
        return batch

    semaphore = asyncio.Semaphore(min(concurrency_limit, total))
    processed = 0

    async def task_with_progress(item: T) -> None:
        nonlocal processed
        outcome: ItemOutcome[T, R] = ItemOutcome(item)
        async with semaphore:
            try:
                outcome.result = await func(item)
            except Exception as e:
                logger.debug(f"Task for {item!r} failed: {type(e).__name__}: {e}")
                outcome.error = e
        batch.outcomes.append(outcome)
        if outcome.result is not None:
            batch.results.append(outcome.result)
        processed += 1
        if progress_callback:
            progress_callback(processed, total)

    await asyncio.gather(*(task_with_progress(item) for item in items))

    if batch.failed:
        logger.warning(f"{len(batch.failed)}/{total} tasks raised")
    return batch
