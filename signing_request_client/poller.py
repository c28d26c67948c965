from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from signing_request_client.backoff import (
    BackoffTimeoutError,
    Clock,
    Fatal,
    Outcome,
    Retryable,
    Success,
    execute_with_retries,
)
from signing_request_client.exceptions import (
    RemoteError,
    SigningRequestTimeoutError,
    TerminalFailureError,
)
from signing_request_client.models import BackoffConfig, SigningRequest

FetchStatus = Callable[[str], Awaitable[SigningRequest]]


def format_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    return f"{hours:02d}:{remainder // 60:02d}"


class CompletionPoller:
    """Waits for a signing request to reach a final status.

    ``fetch_status`` performs a single status request; timing is left entirely to
    :func:`execute_with_retries`.
    """

    def __init__(
        self,
        fetch_status: FetchStatus,
        config: Optional[BackoffConfig] = None,
        clock: Optional[Clock] = None,
        on_status_change: Optional[Callable[[SigningRequest], Awaitable[Any]]] = None,
    ):
        self.fetch_status = fetch_status
        self.config = config or BackoffConfig()
        self.clock = clock
        self.on_status_change = on_status_change
        self.logger = logger

    async def _check_status_once(
        self, signing_request_id: str, last_status: Optional[str]
    ) -> Outcome:
        """Fetches the status once and classifies it for the scheduler"""
        try:
            signing_request = await self.fetch_status(signing_request_id)
        except RemoteError as e:
            self.logger.error(f"SignPath API call error: {e}")
            return Fatal(e)
        except Exception as e:
            self.logger.error(f"Unexpected error while checking signing request status: {e}")
            error = RemoteError(str(e) or type(e).__name__)
            error.__cause__ = e
            return Fatal(error)

        if last_status != signing_request.status and self.on_status_change is not None:
            self.logger.debug(f"Signing request status changed to {signing_request.status}")
            await self.on_status_change(signing_request)

        if not signing_request.is_final_status:
            self.logger.info(
                f"The signing request status is {signing_request.status}, which is not a final status; "
                "after a delay, we will check again..."
            )
            return Retryable(f"Status is {signing_request.status}", signing_request)

        return Success(signing_request)

    async def ensure_completed(self, signing_request_id: str) -> SigningRequest:
        self.logger.info("Checking the signing request status...")
        last_status: Optional[str] = None

        async def operation() -> Outcome:
            nonlocal last_status
            outcome = await self._check_status_once(signing_request_id, last_status)
            if isinstance(outcome, (Success, Retryable)) and outcome.value is not None:
                last_status = outcome.value.status
            return outcome

        try:
            signing_request = await execute_with_retries(
                operation,
                self.config.max_waiting_time,
                self.config.min_delay,
                self.config.max_delay,
                clock=self.clock,
            )
        except BackoffTimeoutError as e:
            last_record = e.last_value
            max_waiting_time = format_duration(self.config.max_waiting_time)
            self.logger.error(
                f"We have exceeded the maximum waiting time, which is {max_waiting_time}, "
                "and the signing request is still not in a final state"
            )
            current = last_record.status if last_record is not None else "unknown"
            raise SigningRequestTimeoutError(
                f"Maximum waiting time of {max_waiting_time} exceeded. "
                f'The signing request is not completed. The current status is "{current}"',
                max_waiting_time=self.config.max_waiting_time,
                last_status=last_record,
            ) from e

        self.logger.info(f"Signing request status is {signing_request.status}")
        if not signing_request.is_completed:
            raise TerminalFailureError(signing_request.status, signing_request)

        return signing_request
