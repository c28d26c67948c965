import asyncio
import tempfile

from signing_server import SigningServer
from signing_request_client.client import SigningRequestClient
from signing_request_client.exceptions import SigningRequestError
from signing_request_client.models import BackoffConfig, SubmitSigningRequestPayload
from signing_request_client.task import SigningRequestTask


async def main():
    PORT = 8000
    server = SigningServer(completion_time=5.0, api_token="demo-token")
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    payload = SubmitSigningRequestPayload(
        api_token="demo-token",
        artifact_name="app",
        github_token="github-token",
        organization_id="demo-org",
        project_slug="demo-project",
        signing_policy_slug="test-signing",
    )
    backoff = BackoffConfig(max_waiting_time=30.0, min_delay=1.0, max_delay=4.0)

    async with SigningRequestClient(
        f"http://localhost:{PORT}", "demo-token", "demo-org"
    ) as client:
        with tempfile.TemporaryDirectory() as workspace:
            task = SigningRequestTask(
                client, payload, output_directory="signed", base_directory=workspace, backoff=backoff
            )
            try:
                result = await task.run()
                print(f"Signing request id: {result.signing_request_id}")
                print(f"Signed artifact extracted to: {result.output_directory}")
            except TimeoutError as e:
                print(f"Polling timed out: {e}")
            except SigningRequestError as e:
                print(f"Error occurred: {e}")


if __name__ == "__main__":
    asyncio.run(main())
