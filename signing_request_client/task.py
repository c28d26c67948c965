from typing import Optional

from loguru import logger

from signing_request_client.artifact import download_signed_artifact, resolve_or_create_directory
from signing_request_client.backoff import Clock
from signing_request_client.client import SigningRequestClient
from signing_request_client.exceptions import SigningRequestError
from signing_request_client.models import (
    BackoffConfig,
    DownloadConfig,
    SubmitSigningRequestPayload,
    TaskResult,
)
from signing_request_client.poller import CompletionPoller


class SigningRequestTask:
    """Submits a signing request and, when an output directory is given,
    waits for it to complete and extracts the signed artifact there."""

    def __init__(
        self,
        client: SigningRequestClient,
        payload: SubmitSigningRequestPayload,
        output_directory: Optional[str] = None,
        base_directory: str = ".",
        temp_root: Optional[str] = None,
        backoff: Optional[BackoffConfig] = None,
        download: Optional[DownloadConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.client = client
        self.payload = payload
        self.output_directory = output_directory
        self.base_directory = base_directory
        self.temp_root = temp_root
        self.poller = CompletionPoller(client.get_signing_request, backoff, clock)
        self.download = download or DownloadConfig()
        self.logger = logger

    async def run(self) -> TaskResult:
        try:
            submitted = await self.client.submit_signing_request(self.payload)
            result = TaskResult(
                signing_request_id=submitted.signing_request_id,
                signing_request_web_url=submitted.signing_request_url,
                signpath_api_url=self.client.urls.api_url,
            )

            if not self.output_directory:
                return result

            signing_request = await self.poller.ensure_completed(result.signing_request_id)
            if not signing_request.signed_artifact_link:
                raise SigningRequestError("The completed signing request has no signed artifact link")

            self.logger.info(f"Signed artifact url {signing_request.signed_artifact_link}")
            target_directory = resolve_or_create_directory(
                self.base_directory, self.output_directory
            )
            await download_signed_artifact(
                self.client.session,
                signing_request.signed_artifact_link,
                self.client.api_token,
                target_directory,
                temp_root=self.temp_root,
                timeout=self.download.timeout,
            )
            return result.model_copy(
                update={
                    "signed_artifact_download_url": signing_request.signed_artifact_link,
                    "output_directory": target_directory,
                }
            )
        except SigningRequestError as e:
            self.logger.error(f"Signing request failed: {e}")
            raise
