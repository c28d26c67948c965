import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Protocol, TypeVar, Union

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Retryable:
    """The operation is not done yet and should be invoked again later.

    ``value`` optionally holds the partial result observed by this attempt, it is
    reported back on timeout.
    """

    reason: str
    value: Any = None


@dataclass(frozen=True)
class Fatal:
    error: BaseException


Outcome = Union[Success[T], Retryable, Fatal]


class Clock(Protocol):
    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class LoopClock:
    """Monotonic time of the running event loop"""

    def now(self) -> float:
        return asyncio.get_event_loop().time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class BackoffTimeoutError(TimeoutError):
    def __init__(self, max_waiting_time: float, attempts: int, elapsed: float, last_value: Any = None):
        self.max_waiting_time = max_waiting_time
        self.attempts = attempts
        self.elapsed = elapsed
        self.last_value = last_value
        super().__init__(
            f"Operation did not succeed within {max_waiting_time} seconds "
            f"({attempts} attempts)"
        )


def next_delay(previous: Optional[float], min_delay: float, max_delay: float) -> float:
    """Returns the delay before the next attempt: min_delay first, then doubling up to max_delay"""
    if previous is None:
        return min(min_delay, max_delay)
    return min(max(previous * 2, min_delay), max_delay)


async def execute_with_retries(
    operation: Callable[[], Awaitable[Outcome]],
    max_waiting_time: float,
    min_delay: float,
    max_delay: float,
    *,
    clock: Optional[Clock] = None,
) -> Any:
    """Invoke ``operation`` until it succeeds, fails fatally or the time budget runs out.

    The first attempt runs immediately. After every retryable outcome the delay
    doubles starting from ``min_delay``, capped by ``max_delay`` and by the time
    left, so the last attempt happens exactly at the deadline. A retryable outcome
    with no time left raises :class:`BackoffTimeoutError`. Fatal outcomes are
    raised as is, and so is any exception escaping ``operation``.
    """
    if min_delay <= 0 or max_delay < min_delay:
        raise ValueError(f"Invalid delay bounds: min_delay={min_delay}, max_delay={max_delay}")

    clock = clock or LoopClock()
    start_time = clock.now()
    delay: Optional[float] = None
    attempts = 0

    while True:
        attempts += 1
        outcome = await operation()

        if isinstance(outcome, Success):
            return outcome.value

        if isinstance(outcome, Fatal):
            raise outcome.error

        if not isinstance(outcome, Retryable):
            raise TypeError(f"Unexpected attempt outcome: {outcome!r}")

        elapsed = clock.now() - start_time
        remaining = max_waiting_time - elapsed
        if remaining <= 0:
            logger.debug(f"Giving up after {attempts} attempts and {elapsed:.2f}s")
            raise BackoffTimeoutError(max_waiting_time, attempts, elapsed, outcome.value)

        delay = next_delay(delay, min_delay, max_delay)
        scheduled = min(delay, remaining)
        logger.debug(
            f"{outcome.reason}; waiting {scheduled:.2f}s before attempt {attempts + 1}"
        )
        await clock.sleep(scheduled)
