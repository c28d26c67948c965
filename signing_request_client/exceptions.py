from typing import List, Optional

from signing_request_client.models import SigningRequest, SetupValidationError


class SigningRequestError(Exception):
    """Base class for all errors surfaced by the signing request client"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RemoteError(SigningRequestError):
    """A call to the SignPath API or connector failed.

    When the remote side answered with a body, that body is the error message;
    otherwise the transport error text is used.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status = status
        self.body = body
        super().__init__(body or message)


class SigningRequestTimeoutError(SigningRequestError, TimeoutError):
    def __init__(
        self,
        message: str,
        max_waiting_time: float,
        last_status: Optional[SigningRequest] = None,
    ):
        self.max_waiting_time = max_waiting_time
        self.last_status = last_status
        super().__init__(message)


class TerminalFailureError(SigningRequestError):
    """The signing request reached a final status other than Completed"""

    def __init__(self, status: str, signing_request: Optional[SigningRequest] = None):
        self.status = status
        self.signing_request = signing_request
        super().__init__(
            f'The signing request is not completed. The final status is "{status}"'
        )


class SubmissionError(SigningRequestError):
    def __init__(
        self, message: str, validation_errors: Optional[List[SetupValidationError]] = None
    ):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class ArtifactDownloadError(SigningRequestError):
    pass
