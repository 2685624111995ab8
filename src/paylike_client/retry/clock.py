"""
Clock abstraction for retry waits.

The retry engine never sleeps on its own; it asks a Clock to call it back
after a delay. Production code uses AsyncioClock (the default). Tests inject
VirtualClock and move time forward programmatically.

All delays and timestamps are in milliseconds.
"""

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol


class Clock(Protocol):
    """Schedules and cancels callbacks on some notion of time."""

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> Any:
        """
        Call `callback` once at least `delay_ms` milliseconds from now.

        Returns:
            Opaque handle accepted by cancel()
        """
        ...

    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback. Cancelling a fired timer is a no-op."""
        ...

    def now(self) -> float:
        """Return the current time in milliseconds."""
        ...


class AsyncioClock:
    """Clock backed by the running event loop's timers."""

    def schedule(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()

    def now(self) -> float:
        return asyncio.get_running_loop().time() * 1000


@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class VirtualClock:
    """
    Controllable clock for deterministic testing.

    Timers only fire from advance(). Between firings the event loop gets a
    few turns, so a coroutine woken by one timer can run up to its next wait
    and schedule a follow-up timer within the same advance() call.

    Example:
        clock = VirtualClock(start=1_000_000)
        task = asyncio.create_task(client.tokenize("pcn", "4100..."))
        await clock.advance(200_000)
        await task
    """

    def __init__(self, start: float = 0, settle_rounds: int = 10) -> None:
        """
        Args:
            start: Initial time in milliseconds
            settle_rounds: Event loop turns granted after each firing
        """
        self._now = start
        self._timers: list[_Timer] = []
        self._seq = itertools.count()
        self.settle_rounds = settle_rounds

    def now(self) -> float:
        return self._now

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(self._now + max(delay_ms, 0), next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    def cancel(self, handle: _Timer) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> int:
        """Number of scheduled timers that have neither fired nor been cancelled."""
        return sum(1 for timer in self._timers if not timer.cancelled)

    async def advance(self, ms: float) -> None:
        """
        Move time forward by `ms`, firing every timer that falls due.

        Raises:
            ValueError: If ms is negative
        """
        if ms < 0:
            raise ValueError(f"Cannot advance time by negative amount: {ms}")
        target = self._now + ms

        await self._settle()
        while self._timers and self._timers[0].due <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = timer.due
            timer.callback()
            await self._settle()

        self._now = target

    async def _settle(self) -> None:
        for _ in range(self.settle_rounds):
            await asyncio.sleep(0)


async def sleep(clock: Clock, delay_ms: float) -> None:
    """Wait `delay_ms` on `clock`. Cancels the timer if the waiter is cancelled."""
    woken = asyncio.get_running_loop().create_future()
    fired = False

    def wake() -> None:
        nonlocal fired
        fired = True
        if not woken.done():
            woken.set_result(None)

    handle = clock.schedule(delay_ms, wake)
    try:
        await woken
    finally:
        if not fired:
            clock.cancel(handle)
