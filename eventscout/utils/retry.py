"""Bounded retries for provider calls, built on tenacity.

Only exceptions flagged ``retryable`` (see :mod:`eventscout.utils.errors`)
are repeated, with exponential backoff between attempts.  Callers wrap the
whole retry loop in their per-call timeout, so retries never extend a
stage deadline; they only use the time the first attempt left unused.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")

# Cap on a single backoff, as a multiple of the base delay.
_MAX_BACKOFF_FACTOR = 8


@dataclass
class AttemptCounter:
    """Number of attempts started so far; readable after a timeout."""

    count: int = 0


def is_retryable(exc: BaseException) -> bool:
    return bool(getattr(exc, "retryable", False))


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "provider_call_retry",
        attempt=state.attempt_number,
        wait_s=round(state.next_action.sleep, 3) if state.next_action else None,
        error=str(error) if error else None,
    )


async def call_with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    backoff: float,
    counter: AttemptCounter | None = None,
) -> T:
    """Await ``call()`` until it succeeds or *max_attempts* are used.

    Args:
        call: Zero-argument coroutine factory; invoked once per attempt.
        max_attempts: Total attempts, the first included.
        backoff: Delay before the second attempt in seconds; doubles after.
        counter: Updated as attempts start.

    Raises:
        The last exception when it is not retryable or attempts run out.
    """
    counter = counter if counter is not None else AttemptCounter()
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(max_attempts, 1)),
        wait=wait_exponential(multiplier=backoff, max=backoff * _MAX_BACKOFF_FACTOR),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            counter.count = attempt.retry_state.attempt_number
            result = await call()
    return result
