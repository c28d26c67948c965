import pytest
from conftest import FakeClock
from signing_request_client.backoff import (
    BackoffTimeoutError,
    Fatal,
    Retryable,
    Success,
    execute_with_retries,
    next_delay,
)


def scripted(outcomes, clock=None, latency=0.0):
    """Build an operation returning the given outcomes in order, counting calls."""
    calls = []

    async def operation():
        calls.append(clock.now() if clock else None)
        if clock and latency:
            clock.advance(latency)
        return outcomes[min(len(calls), len(outcomes)) - 1]

    return operation, calls


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_sleep():
    clock = FakeClock()
    operation, calls = scripted([Success("done")], clock)

    result = await execute_with_retries(operation, 60, 1, 8, clock=clock)

    assert result == "done"
    assert len(calls) == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_delays_double_from_min_up_to_max():
    clock = FakeClock()
    outcomes = [Retryable("pending")] * 6 + [Success("done")]
    operation, calls = scripted(outcomes, clock)

    result = await execute_with_retries(operation, 1000, 1, 8, clock=clock)

    assert result == "done"
    assert len(calls) == 7
    assert clock.sleeps == [1, 2, 4, 8, 8, 8]
    assert clock.sleeps == sorted(clock.sleeps)


@pytest.mark.asyncio
async def test_last_attempt_happens_exactly_at_deadline():
    clock = FakeClock()
    operation, calls = scripted([Retryable("pending", "InProgress")], clock)

    with pytest.raises(BackoffTimeoutError) as exc_info:
        await execute_with_retries(operation, 20, 1, 8, clock=clock)

    # 1 + 2 + 4 + 8 = 15, the remaining 5 seconds are waited out before the final try
    assert clock.sleeps == [1, 2, 4, 8, 5]
    assert calls[-1] == calls[0] + 20
    assert exc_info.value.attempts == 6
    assert exc_info.value.last_value == "InProgress"
    assert isinstance(exc_info.value, TimeoutError)


@pytest.mark.asyncio
async def test_operation_latency_counts_against_the_budget():
    clock = FakeClock()
    operation, calls = scripted([Retryable("pending")], clock, latency=3)

    with pytest.raises(BackoffTimeoutError):
        await execute_with_retries(operation, 10, 1, 8, clock=clock)

    assert all(call <= calls[0] + 10 for call in calls)
    assert clock.sleeps == [1, 2]


@pytest.mark.asyncio
async def test_fatal_outcome_is_raised_without_retry():
    clock = FakeClock()
    error = RuntimeError("bad credentials")
    operation, calls = scripted([Fatal(error)], clock)

    with pytest.raises(RuntimeError) as exc_info:
        await execute_with_retries(operation, 60, 1, 8, clock=clock)

    assert exc_info.value is error
    assert len(calls) == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_exception_escaping_operation_propagates():
    clock = FakeClock()

    async def operation():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await execute_with_retries(operation, 60, 1, 8, clock=clock)
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_equal_bounds_poll_at_constant_interval():
    clock = FakeClock()
    outcomes = [Retryable("pending")] * 4 + [Success("done")]
    operation, calls = scripted(outcomes, clock)

    await execute_with_retries(operation, 100, 5, 5, clock=clock)

    assert clock.sleeps == [5, 5, 5, 5]


@pytest.mark.asyncio
async def test_budget_below_min_delay_still_makes_second_attempt():
    clock = FakeClock()
    operation, calls = scripted([Retryable("pending")], clock)

    with pytest.raises(BackoffTimeoutError):
        await execute_with_retries(operation, 0.5, 1, 8, clock=clock)

    assert len(calls) == 2
    assert clock.sleeps == [0.5]


@pytest.mark.asyncio
async def test_zero_budget_times_out_after_single_attempt():
    clock = FakeClock()
    operation, calls = scripted([Retryable("pending")], clock)

    with pytest.raises(BackoffTimeoutError):
        await execute_with_retries(operation, 0, 1, 8, clock=clock)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_invalid_delay_bounds_are_rejected():
    operation, _ = scripted([Success("done")])

    with pytest.raises(ValueError):
        await execute_with_retries(operation, 10, 5, 1, clock=FakeClock())
    with pytest.raises(ValueError):
        await execute_with_retries(operation, 10, 0, 1, clock=FakeClock())


@pytest.mark.asyncio
async def test_unknown_outcome_type_is_an_error():
    async def operation():
        return "not an outcome"

    with pytest.raises(TypeError):
        await execute_with_retries(operation, 10, 1, 2, clock=FakeClock())


def test_next_delay():
    assert next_delay(None, 60, 1200) == 60
    assert next_delay(60, 60, 1200) == 120
    assert next_delay(960, 60, 1200) == 1200
    assert next_delay(1200, 60, 1200) == 1200
