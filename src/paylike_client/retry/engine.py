"""
Retry engine.

Runs an async operation until it succeeds or the retry policy gives up.
Waits between attempts go through an injected Clock, so tests can drive
a whole retry sequence with a VirtualClock.

Usage:
    result = await retry(
        lambda: transport(endpoint, **options).first(),
        default_retry_after,
        clock=clock,
    )
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from .backoff import RetryPolicy, is_retry_delay
from .clock import AsyncioClock, Clock, sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryState(str, Enum):
    """States of one retry sequence. SUCCESS and FAILED are terminal."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCESS = "success"
    FAILED = "failed"


async def retry(
    operation: Callable[[], Awaitable[T]],
    retry_after: RetryPolicy,
    *,
    clock: Clock | None = None,
    attempt: int = 1,
    on_state: Callable[[RetryState, int], None] | None = None,
) -> T:
    """
    Call `operation` until it succeeds or `retry_after` declines.

    After each failure the policy is asked `retry_after(err, attempt)`. A
    non-negative int is a delay in milliseconds before the next attempt;
    any other answer re-raises the failure unchanged. Attempts never
    overlap, and the attempt number grows by exactly one per retry.

    Cancelling the awaiting task during a wait cancels the pending timer.

    Args:
        operation: Zero-argument coroutine function doing one attempt
        retry_after: Policy deciding whether and when to retry
        clock: Time source for waits (default: AsyncioClock())
        attempt: Number of the first attempt (default: 1)
        on_state: Optional callback(state, attempt) on every state change

    Returns:
        The result of the first successful attempt
    """
    if clock is None:
        clock = AsyncioClock()

    def enter(state: RetryState) -> None:
        if on_state:
            on_state(state, attempt)

    enter(RetryState.IDLE)

    while True:
        enter(RetryState.ATTEMPTING)
        try:
            result = await operation()
        except Exception as e:
            delay = retry_after(e, attempt)
            if not is_retry_delay(delay):
                enter(RetryState.FAILED)
                if attempt > 1:
                    logger.warning(f"Giving up after {attempt} attempts: {e!r}")
                raise
            logger.debug(f"Attempt {attempt} failed: {e!r}, retrying in {delay}ms")
        else:
            enter(RetryState.SUCCESS)
            return result

        enter(RetryState.WAITING)
        await sleep(clock, delay)
        attempt += 1
