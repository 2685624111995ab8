"""
Paylike Client - Retry Logic.

Clock-driven retry loop with pluggable backoff policies.
"""

from .config import DEFAULT_SCHEDULE, RetrySchedule
from .backoff import (
    RetryPolicy,
    constant_retry_after,
    default_retry_after,
    is_retry_delay,
    make_retry_after,
)
from .clock import AsyncioClock, Clock, VirtualClock, sleep
from .engine import RetryState, retry

__all__ = [
    "DEFAULT_SCHEDULE",
    "RetrySchedule",
    "RetryPolicy",
    "constant_retry_after",
    "default_retry_after",
    "is_retry_delay",
    "make_retry_after",
    "AsyncioClock",
    "Clock",
    "VirtualClock",
    "sleep",
    "RetryState",
    "retry",
]
