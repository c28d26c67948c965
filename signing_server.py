import io
import uuid
import zipfile
from datetime import datetime
from typing import Dict, Optional, Tuple

from aiohttp import web
from loguru import logger


def build_artifact_zip(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class SigningServer:
    """In-process stand-in for the SignPath connector and API"""

    def __init__(
        self,
        completion_time: float = 10.0,
        final_status: str = "Completed",
        api_token: str = "test-token",
        artifact_files: Optional[Dict[str, bytes]] = None,
    ):
        self.completion_time = completion_time
        self.final_status = final_status
        self.api_token = api_token
        self.artifact_files = artifact_files or {"signed/app.exe": b"signed binary"}
        self.submit_response: Optional[dict] = None
        self.status_error: Optional[Tuple[int, str]] = None
        self.submitted_payloads = []
        self.status_requests = 0
        self.base_url = None
        self.runner = None
        self.start_times: Dict[str, datetime] = {}
        self.app = web.Application()
        self.app.router.add_post("/api/sign", self.handle_submit)
        self.app.router.add_get(
            "/API/v1/{organization_id}/SigningRequests/{signing_request_id}",
            self.handle_status,
        )
        self.app.router.add_get(
            "/API/v1/{organization_id}/SigningRequests/{signing_request_id}/SignedArtifact",
            self.handle_artifact,
        )
        self.logger = logger

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.api_token}"

    async def handle_submit(self, request):
        payload = await request.json()
        self.submitted_payloads.append(payload)
        if self.submit_response is not None:
            return web.json_response(self.submit_response)

        signing_request_id = str(uuid.uuid4())
        self.start_times[signing_request_id] = datetime.now()
        organization_id = payload.get("signPathOrganizationId")
        self.logger.info(f"Accepted signing request {signing_request_id}")
        return web.json_response(
            {
                "signingRequestId": signing_request_id,
                "signingRequestUrl": f"{self.base_url}/Web/{organization_id}/SigningRequests/{signing_request_id}",
                "validationResult": None,
                "error": None,
            }
        )

    async def handle_status(self, request):
        self.status_requests += 1
        if not self._authorized(request):
            return web.Response(status=401, text="Invalid API token")
        if self.status_error is not None:
            status, text = self.status_error
            return web.Response(status=status, text=text)

        signing_request_id = request.match_info["signing_request_id"]
        start_time = self.start_times.setdefault(signing_request_id, datetime.now())
        elapsed = (datetime.now() - start_time).total_seconds()

        if elapsed < self.completion_time:
            self.logger.info(f"Returning InProgress status (elapsed: {elapsed:.1f}s)")
            return web.json_response(
                {"status": "InProgress", "isFinalStatus": False, "signedArtifactLink": None}
            )

        self.logger.info(f"Returning {self.final_status} status")
        link = None
        if self.final_status == "Completed":
            link = f"{self.base_url}{request.path}/SignedArtifact"
        return web.json_response(
            {"status": self.final_status, "isFinalStatus": True, "signedArtifactLink": link}
        )

    async def handle_artifact(self, request):
        if not self._authorized(request):
            return web.Response(status=401, text="Invalid API token")
        return web.Response(
            body=build_artifact_zip(self.artifact_files), content_type="application/zip"
        )

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.base_url = f"http://localhost:{port}"
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
