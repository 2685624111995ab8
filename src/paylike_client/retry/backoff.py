"""
Retry policies.

A policy is called with the failed attempt's exception and the 1-based
attempt number. It returns a delay in milliseconds to retry, or anything
else (usually False) to give up.
"""

from typing import Any, Callable

from .config import DEFAULT_SCHEDULE, RetrySchedule

RetryPolicy = Callable[[BaseException, int], Any]


def is_retry_delay(decision: Any) -> bool:
    """Check whether a policy decision asks for a retry (a non-negative int)."""
    return (
        isinstance(decision, int)
        and not isinstance(decision, bool)
        and decision >= 0
    )


def default_retry_after(
    err: BaseException,
    attempts: int,
    schedule: RetrySchedule = DEFAULT_SCHEDULE,
) -> int | bool:
    """
    Default policy for API calls.

    Gives up once the schedule is exhausted or on a final error (a
    structured rejection from the service). Honors a server-suggested
    delay exactly; otherwise follows the schedule.

    Args:
        err: Exception raised by the failed attempt
        attempts: Number of attempts made so far (1-based)
        schedule: Delay schedule (default: 0, 100, 2000, then 10000ms)

    Returns:
        Delay in milliseconds, or False to stop retrying
    """
    if schedule.exhausted(attempts) or getattr(err, "final", False):
        return False

    retry_after = getattr(err, "retry_after", None)
    if retry_after is not None:
        return retry_after

    return schedule.delay_for(attempts)


def make_retry_after(schedule: RetrySchedule) -> RetryPolicy:
    """Build a default-style policy that follows another schedule."""

    def retry_after(err: BaseException, attempts: int) -> int | bool:
        return default_retry_after(err, attempts, schedule)

    return retry_after


def constant_retry_after(delay: int, max_attempts: int | None = None) -> RetryPolicy:
    """
    Build a policy that retries every `delay` ms, ignoring the error type.

    With max_attempts=None it never gives up.
    """

    def retry_after(err: BaseException, attempts: int) -> int | bool:
        if max_attempts is not None and attempts >= max_attempts:
            return False
        return delay

    return retry_after
