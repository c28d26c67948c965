from signing_request_client.backoff import (
    BackoffTimeoutError,
    Fatal,
    LoopClock,
    Retryable,
    Success,
    execute_with_retries,
)
from signing_request_client.client import SigningRequestClient
from signing_request_client.exceptions import (
    ArtifactDownloadError,
    RemoteError,
    SigningRequestError,
    SigningRequestTimeoutError,
    SubmissionError,
    TerminalFailureError,
)
from signing_request_client.models import (
    BackoffConfig,
    DownloadConfig,
    SigningRequest,
    SubmitSigningRequestPayload,
    TaskResult,
)
from signing_request_client.poller import CompletionPoller
from signing_request_client.task import SigningRequestTask

__all__ = [
    "ArtifactDownloadError",
    "BackoffConfig",
    "BackoffTimeoutError",
    "CompletionPoller",
    "DownloadConfig",
    "Fatal",
    "LoopClock",
    "RemoteError",
    "Retryable",
    "SigningRequest",
    "SigningRequestClient",
    "SigningRequestError",
    "SigningRequestTask",
    "SigningRequestTimeoutError",
    "SubmissionError",
    "Success",
    "SubmitSigningRequestPayload",
    "TaskResult",
    "TerminalFailureError",
    "execute_with_retries",
]
