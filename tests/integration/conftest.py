"""Integration test fixtures (in-process upstream service).

The full client runs over the real HttpxTransport, with httpx.MockTransport
standing in for the network so the tests need no running server.
"""

from collections import defaultdict
from typing import Callable

import httpx
import pytest
import pytest_asyncio

from resilient_http.client import ClientConfig, RequestClient
from resilient_http.transport.httpx_transport import HttpxTransport

Route = Callable[[httpx.Request, int], httpx.Response]


class FakeUpstream:
    """
    Routes requests by path to handlers and records every request seen.

    Handlers receive the request and the 0-based hit count for that path,
    which makes "fail twice, then succeed" scenarios easy to script.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []
        self.hits: dict[str, int] = defaultdict(int)

    def route(self, path: str, handler: Route) -> None:
        self.routes[path] = handler

    def requests_for(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        handler = self.routes.get(path)
        if handler is None:
            return httpx.Response(404, json={"error": f"no route for {path}"})
        hit = self.hits[path]
        self.hits[path] += 1
        return handler(request, hit)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def integration_settings(test_settings):
    """Settings pointing at the in-process upstream."""
    test_settings.BASE_URL = "https://upstream.test/api"
    test_settings.TIMEOUT = 2.0
    return test_settings


@pytest_asyncio.fixture
async def client(upstream, integration_settings):
    """RequestClient wired to the fake upstream through HttpxTransport."""
    transport = HttpxTransport(transport=httpx.MockTransport(upstream))
    request_client = RequestClient(
        ClientConfig.from_settings(integration_settings), transport=transport
    )

    yield request_client

    await request_client.close()
