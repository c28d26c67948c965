import asyncio
import json
from typing import Optional

import aiohttp
from loguru import logger

from signing_request_client.exceptions import RemoteError, SubmissionError
from signing_request_client.models import (
    SigningRequest,
    SubmitSigningRequestPayload,
    SubmitSigningRequestResult,
)
from signing_request_client.urls import SignPathUrlBuilder


def error_response_to_text(status: int, reason: Optional[str], body: Optional[str]) -> str:
    """Turns an error response into a readable message, preferring what the server said"""
    if body and body.strip():
        try:
            data = json.loads(body)
        except ValueError:
            return body.strip()
        if isinstance(data, dict):
            for key in ("error", "detail", "title", "message"):
                if data.get(key):
                    return str(data[key])
        if isinstance(data, str):
            return data
        return body.strip()
    return f"HTTP {status}: {reason or 'no reason given'}"


class SigningRequestClient:
    def __init__(
        self,
        connector_url: str,
        api_token: str,
        organization_id: str,
        signpath_base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.urls = SignPathUrlBuilder(connector_url, signpath_base_url)
        self.api_token = api_token
        self.organization_id = organization_id
        self.logger = logger
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "SigningRequestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    @property
    def authorization_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _raise_for_response(self, response: aiohttp.ClientResponse, url: str) -> None:
        if response.status < 400:
            return
        body = await response.text()
        message = error_response_to_text(response.status, response.reason, body)
        self.logger.error(f"HTTP error {response.status} at {url}: {message}")
        raise RemoteError(
            f"HTTP {response.status}: {response.reason}",
            status=response.status,
            body=message if body and body.strip() else None,
        )

    async def submit_signing_request(
        self, payload: SubmitSigningRequestPayload
    ) -> SubmitSigningRequestResult:
        """Submits a signing request to the SignPath CI connector"""
        self.logger.info("Submitting the signing request to SignPath CI connector...")
        url = self.urls.build_submit_signing_request_url()

        try:
            async with self.session.post(url, json=payload.to_json()) as response:
                await self._raise_for_response(response, url)
                result = SubmitSigningRequestResult.model_validate(await response.json())
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"SignPath API call error: {e}")
            raise RemoteError(str(e) or type(e).__name__) from e

        if result.error:
            raise SubmissionError(result.error)

        if result.validation_result and result.validation_result.errors:
            errors = result.validation_result.errors
            self.logger.error(
                f'Build artifact "{payload.artifact_name}" cannot be signed because of '
                "continuous integration system setup validation errors:"
            )
            for validation_error in errors:
                self.logger.error(validation_error.error)
                if validation_error.how_to_fix:
                    self.logger.info(validation_error.how_to_fix)
            raise SubmissionError("CI system validation failed.", errors)

        if not result.signing_request_id or not result.signing_request_url:
            raise SubmissionError(
                "SignPath signing request was not created. Please make sure that the connector url "
                "is pointing to the SignPath GitHub Actions connector endpoint."
            )

        self.urls.update_base_url(result.signing_request_url)

        self.logger.info("SignPath signing request has been successfully submitted")
        self.logger.info(f"The signing request id is {result.signing_request_id}")
        self.logger.info(f"You can view the signing request here: {result.signing_request_url}")
        return result

    async def get_signing_request(self, signing_request_id: str) -> SigningRequest:
        """Fetches the current status of a signing request"""
        url = self.urls.build_get_signing_request_url(self.organization_id, signing_request_id)

        try:
            async with self.session.get(url, headers=self.authorization_headers) as response:
                await self._raise_for_response(response, url)
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"SignPath API call error: {e}")
            self.logger.error(f"Signing request details API URL is: {url}")
            raise RemoteError(str(e) or type(e).__name__) from e

        return SigningRequest.model_validate(data)
