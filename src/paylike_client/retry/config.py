"""
Retry schedule definitions.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetrySchedule:
    """
    Delay schedule used by the default retry policy.

    Attributes:
        max_attempts: Attempts after which no more retries happen (default: 10,
            so a failing call runs 11 times in total)
        delays: Delay in milliseconds after attempt 1, 2, 3, ... (default:
            immediate retry, then 100ms, then 2s)
        fallback_delay: Delay once `delays` is exhausted (default: 10s)
    """

    max_attempts: int = 10
    delays: tuple[int, ...] = (0, 100, 2000)
    fallback_delay: int = 10000

    def delay_for(self, attempt: int) -> int:
        """Delay in milliseconds before retrying after the given (1-based) attempt."""
        if 1 <= attempt <= len(self.delays):
            return self.delays[attempt - 1]
        return self.fallback_delay

    def exhausted(self, attempt: int) -> bool:
        """Check whether the given attempt was the last one allowed to retry."""
        return attempt > self.max_attempts

    @classmethod
    def no_retry(cls) -> "RetrySchedule":
        """Preset for no retry (single attempt only)."""
        return cls(max_attempts=0)


DEFAULT_SCHEDULE = RetrySchedule()
