"""Bounded-concurrency batch driver shared by the pipeline stages."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from ..control import ControlContext
from ..domain import ProgressReport


T = TypeVar("T")
R = TypeVar("R")

ProgressSink = Callable[[ProgressReport], None]


def percent_complete(done: int, total: int) -> int:
    """Floor percentage; an empty workload counts as complete."""
    if total <= 0:
        return 100
    return (100 * done) // total


async def run_batches(
    items: Sequence[T],
    transform: Callable[[T], Awaitable[R]],
    control: ControlContext,
    stage: str,
    chunk_size: int = 5,
    on_progress: Optional[ProgressSink] = None,
    yield_delay: float = 0.01,
    logger: Optional[logging.Logger] = None
) -> list[R]:
    """
    Run ``transform`` over ``items`` in sequential chunks of concurrent work.

    Before each chunk the control context is consulted, so a pause holds the
    stage at the chunk boundary and a cancel aborts it. After each chunk a
    :class:`ProgressReport` with the cumulative count is emitted.

    A transform that raises is logged and its item left out of the results.

    Args:
        items: Work items
        transform: Async per-item function
        control: Control context for the run
        stage: Stage name used in progress reports and logs
        chunk_size: Items processed concurrently per chunk
        on_progress: Optional progress sink
        yield_delay: Pause between chunks so command handlers get scheduled
        logger: Logger instance

    Returns:
        Results of successful transforms, in item order

    Raises:
        Cancelled: If the run is cancelled before a chunk starts
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")

    logger = logger or logging.getLogger("fcexport")
    total = len(items)
    results: list[R] = []
    done = 0

    if total == 0 and on_progress:
        on_progress(ProgressReport(stage, 100, 0, 0))

    for start in range(0, total, chunk_size):
        await control.checkpoint(stage)

        chunk = items[start:start + chunk_size]
        outcomes = await asyncio.gather(
            *(transform(item) for item in chunk),
            return_exceptions=True
        )

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.error(
                    f"[{stage}] Item failed: {type(outcome).__name__}: {outcome}"
                )
                continue
            results.append(outcome)

        done += len(chunk)

        if on_progress:
            on_progress(ProgressReport(stage, percent_complete(done, total), done, total))

        await asyncio.sleep(yield_delay)

    return results
