from typing import AsyncGenerator, List

import pytest_asyncio
from signing_server import SigningServer

BASE_URL_TEMPLATE = "http://localhost:{}"
API_TOKEN = "test-token"
ORGANIZATION_ID = "test-org"


class FakeClock:
    """Clock whose time only moves when something sleeps on it"""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest_asyncio.fixture
async def server(unused_tcp_port_factory) -> AsyncGenerator[SigningServer, None]:
    """Start and yield a test SigningServer instance on a random port."""
    port = unused_tcp_port_factory()
    server_instance = SigningServer(completion_time=0.3, api_token=API_TOKEN)
    await server_instance.start(port=port)
    try:
        yield server_instance
    finally:
        await server_instance.stop()
