"""Deadline-bounded fan-out for the search pipeline.

:func:`collect_within` implements the fan-out / deadline / collect-then-merge
pattern used by every fan-out stage: start one task per key, wait until all
are done, the stage deadline passes, or a stop condition fires, then cancel
whatever is still in flight.  Results come back keyed by the caller's key,
so merging happens in the caller's order rather than completion order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

import structlog

from eventscout.utils.logging import get_logger

_T = TypeVar("_T")
_K = TypeVar("_K", bound=Hashable)

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass
class CollectedResults(Generic[_K, _T]):
    """Outcome of :func:`collect_within`.

    Attributes
    ----------
    results:
        Finished tasks keyed by caller key.  A value is either the task's
        return value or the exception it raised.
    cancelled:
        Keys whose tasks were still running at the deadline (or when the
        stop condition fired) and were cancelled.
    stopped_early:
        ``True`` when the stop condition ended collection.
    """

    results: dict[_K, _T | BaseException] = field(default_factory=dict)
    cancelled: list[_K] = field(default_factory=list)
    stopped_early: bool = False


async def collect_within(
    coros: dict[_K, Awaitable[_T]],
    timeout: float | None,
    stop_when: Callable[[dict[_K, _T | BaseException]], bool] | None = None,
) -> CollectedResults[_K, _T]:
    """Run keyed coroutines concurrently under one overall deadline.

    Parameters
    ----------
    coros:
        Mapping of caller key to coroutine.  Insertion order is preserved
        in :attr:`CollectedResults.cancelled`.
    timeout:
        Overall deadline in seconds for the whole batch, or ``None`` for no
        stage-level deadline.  Tasks still pending when it expires are
        cancelled; already-finished results are kept.
    stop_when:
        Optional predicate evaluated after each completion.  Returning
        ``True`` cancels the remaining tasks.

    Returns
    -------
    CollectedResults
        Finished results, cancelled keys and the early-stop marker.
    """
    collected: CollectedResults[_K, _T] = CollectedResults()
    if not coros:
        return collected

    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + max(timeout, 0.0)
    task_keys: dict[asyncio.Task, _K] = {
        asyncio.ensure_future(coro): key for key, coro in coros.items()
    }
    pending: set[asyncio.Task] = set(task_keys)

    try:
        while pending:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                key = task_keys[task]
                if task.cancelled():
                    collected.cancelled.append(key)
                    continue
                exc = task.exception()
                collected.results[key] = exc if exc is not None else task.result()
            if stop_when is not None and pending and stop_when(collected.results):
                collected.stopped_early = True
                break
    finally:
        # Cancel whatever is still running and wait for the cancellations
        # to land so no task outlives the stage.
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    for task, key in task_keys.items():
        if task in pending:
            collected.cancelled.append(key)

    if collected.cancelled:
        _logger.debug(
            "collect_within_cancelled",
            cancelled=len(collected.cancelled),
            finished=len(collected.results),
            stopped_early=collected.stopped_early,
        )
    return collected
