"""Tests for the retry engine - driven by a virtual clock."""

import asyncio

import pytest
from paylike_client.retry import RetryState, VirtualClock, retry


class FlakyOperation:
    """Operation that fails `failures` times, then returns `result`."""

    def __init__(self, clock, failures, result="ok"):
        self.clock = clock
        self.failures = failures
        self.result = result
        self.calls: list[float] = []
        self.errors: list[Exception] = []

    async def __call__(self):
        self.calls.append(self.clock.now())
        if len(self.calls) <= self.failures:
            error = RuntimeError(f"failure {len(self.calls)}")
            self.errors.append(error)
            raise error
        return self.result


class ImmediateClock:
    """Clock that fires every timer on the next loop turn."""

    def schedule(self, delay_ms, callback):
        return asyncio.get_running_loop().call_soon(callback)

    def cancel(self, handle):
        handle.cancel()

    def now(self):
        return 0


class TestRetrySuccess:
    """Test successful retry sequences."""

    @pytest.mark.asyncio
    async def test_returns_result_without_retry(self):
        """A first-try success never consults the policy."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=0)
        consulted = []

        result = await retry(
            operation, lambda e, n: consulted.append(n) or 0, clock=clock
        )

        assert result == "ok"
        assert operation.calls == [0]
        assert consulted == []

    @pytest.mark.asyncio
    async def test_eventual_success_after_failures(self):
        """Failures followed by success yield the success result."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=3, result="token")

        task = asyncio.create_task(retry(operation, lambda e, n: 100, clock=clock))
        await clock.advance(1000)

        assert await task == "token"
        assert operation.calls == [0, 100, 200, 300]

    @pytest.mark.asyncio
    async def test_long_sequences_do_not_grow_the_stack(self):
        """Thousands of retries run in constant stack depth."""
        operation = FlakyOperation(ImmediateClock(), failures=3000)

        result = await retry(operation, lambda e, n: 0, clock=ImmediateClock())

        assert result == "ok"
        assert len(operation.calls) == 3001


class TestRetryFailure:
    """Test sequences that end in failure."""

    @pytest.mark.asyncio
    async def test_attempt_numbers_are_sequential(self):
        """The policy sees 1, 2, 3, ... with no gaps or repeats."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=100)
        seen = []

        def policy(err, attempts):
            seen.append(attempts)
            return 0 if attempts < 5 else False

        task = asyncio.create_task(retry(operation, policy, clock=clock))
        await clock.advance(0)

        with pytest.raises(RuntimeError):
            await task
        assert seen == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_decline_reraises_last_error_unchanged(self):
        """Declining on attempt N means N calls and the N-th error, unwrapped."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=100)

        task = asyncio.create_task(
            retry(operation, lambda e, n: 10 if n < 4 else False, clock=clock)
        )
        await clock.advance(1000)

        with pytest.raises(RuntimeError) as exc_info:
            await task
        assert len(operation.calls) == 4
        assert exc_info.value is operation.errors[-1]

    @pytest.mark.parametrize(
        "decision", [False, None, True, -1, 1.5, 1.0, float("nan"), "100"]
    )
    @pytest.mark.asyncio
    async def test_invalid_decisions_decline(self, decision):
        """Anything but a non-negative int stops after one attempt."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=100)

        with pytest.raises(RuntimeError):
            await retry(operation, lambda e, n: decision, clock=clock)

        assert len(operation.calls) == 1
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_policy_exception_propagates(self):
        """A policy that raises ends the sequence with its own error."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=100)

        def policy(err, attempts):
            raise ValueError("bad policy")

        with pytest.raises(ValueError, match="bad policy"):
            await retry(operation, policy, clock=clock)

    @pytest.mark.asyncio
    async def test_base_exceptions_are_not_retried(self):
        """Cancellation inside the operation is never treated as a failure."""
        consulted = []

        async def operation():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await retry(operation, lambda e, n: consulted.append(n) or 0, clock=VirtualClock())
        assert consulted == []


class TestRetryTiming:
    """Test waits between attempts."""

    @pytest.mark.asyncio
    async def test_fixed_delay_spaces_attempts_evenly(self):
        """A constant policy retries indefinitely, exactly `d` ms apart."""
        clock = VirtualClock(start=5000)
        operation = FlakyOperation(clock, failures=10**6)

        task = asyncio.create_task(retry(operation, lambda e, n: 250, clock=clock))
        await clock.advance(250 * 9)

        assert operation.calls == [5000 + 250 * i for i in range(10)]
        assert not task.done()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_cancel_during_wait_cancels_timer(self):
        """Cancelling a waiting sequence leaves no timer behind."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=100)

        task = asyncio.create_task(retry(operation, lambda e, n: 1000, clock=clock))
        await clock.advance(0)
        assert clock.pending == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await clock.advance(5000)
        assert clock.pending == 0
        assert len(operation.calls) == 1

    @pytest.mark.asyncio
    async def test_first_attempt_number_is_configurable(self):
        """The counter starts at `attempt`."""
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=1)
        seen = []

        task = asyncio.create_task(
            retry(operation, lambda e, n: seen.append(n) or 0, clock=clock, attempt=3)
        )
        await clock.advance(0)

        assert await task == "ok"
        assert seen == [3]

    @pytest.mark.asyncio
    async def test_works_with_real_event_loop_clock(self):
        """Without a clock argument, waits use the event loop."""
        operation = FlakyOperation(VirtualClock(), failures=2)

        result = await retry(operation, lambda e, n: 1)

        assert result == "ok"
        assert len(operation.calls) == 3


class TestRetryStates:
    """Test the state observer."""

    @pytest.mark.asyncio
    async def test_states_for_one_retry_then_success(self):
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=1)
        states = []

        task = asyncio.create_task(
            retry(
                operation,
                lambda e, n: 0,
                clock=clock,
                on_state=lambda state, attempt: states.append((state, attempt)),
            )
        )
        await clock.advance(0)
        await task

        assert states == [
            (RetryState.IDLE, 1),
            (RetryState.ATTEMPTING, 1),
            (RetryState.WAITING, 1),
            (RetryState.ATTEMPTING, 2),
            (RetryState.SUCCESS, 2),
        ]

    @pytest.mark.asyncio
    async def test_states_for_decline(self):
        clock = VirtualClock()
        operation = FlakyOperation(clock, failures=1)
        states = []

        with pytest.raises(RuntimeError):
            await retry(
                operation,
                lambda e, n: False,
                clock=clock,
                on_state=lambda state, attempt: states.append(state),
            )

        assert states == [RetryState.IDLE, RetryState.ATTEMPTING, RetryState.FAILED]


class TestConcurrentSequences:
    """Test independent sequences sharing a clock."""

    @pytest.mark.asyncio
    async def test_attempt_counters_do_not_interleave(self):
        clock = VirtualClock()
        seen = {"a": [], "b": []}

        def policy_for(name):
            def policy(err, attempts):
                seen[name].append(attempts)
                return 100 if attempts < 3 else False
            return policy

        a = asyncio.create_task(retry(FlakyOperation(clock, 100), policy_for("a"), clock=clock))
        b = asyncio.create_task(retry(FlakyOperation(clock, 100), policy_for("b"), clock=clock))
        await clock.advance(1000)

        results = await asyncio.gather(a, b, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert seen == {"a": [1, 2, 3], "b": [1, 2, 3]}
