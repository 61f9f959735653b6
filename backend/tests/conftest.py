"""
Test Configuration — Fixtures for simulated clusters, the merchant service
and the API test client.

Clusters are simulated with httpx.MockTransport: a FakeCluster routes each
request by (method, path), records it, and answers with a canned response.
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from core.config import Settings
from core.security import SessionContext
from merchant_api import MerchantService

TOKEN = "test-token"
WEBCHAT_URL = "https://chat.example.test/webchat.html"

Responder = Callable[[httpx.Request], httpx.Response]


class FakeCluster:
    """Routes simulated cluster calls by (method, path) and records them."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
        responder: Responder | None = None,
    ) -> None:
        if responder is None:

            def responder(request: httpx.Request) -> httpx.Response:
                if text is not None:
                    return httpx.Response(status, text=text)
                if json is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=json)

        self.routes[(method.upper(), path.strip("/"))] = responder

    def fail(self, method: str, path: str) -> None:
        """Simulate a network failure on every call to this route."""

        def responder(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.routes[(method.upper(), path.strip("/"))] = responder

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path.strip("/")))
        if responder is None:
            return httpx.Response(404, json={"error": "no route"})
        return responder(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.strip("/") == path.strip("/")]


@pytest.fixture
def settings() -> Settings:
    """Deterministic settings: no .env file, instant retries."""
    return Settings(
        _env_file=None,
        app_env="test",
        cluster_urls="",
        clusters_config="",
        retry_attempts=2,
        retry_max_wait_seconds=0,
        platform_token="",
        webchat_base_url=WEBCHAT_URL,
    )


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(TOKEN)


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
async def service(settings, session, cluster):
    """Merchant service wired to the simulated cluster."""
    async with MerchantService(session=session, settings=settings, transport=cluster.transport()) as svc:
        yield svc


@pytest.fixture
async def client(service):
    """Async API test client around the simulated-cluster service."""
    from api.main import create_app

    app = create_app(service)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
