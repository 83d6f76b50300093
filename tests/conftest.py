import time
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import anyio
import httpx
import pytest

from oauth2_transport.shared.auth import Config, Token


@pytest.fixture
def anyio_backend():
    return "asyncio"


class MockOAuthServer:
    """Scripted token endpoint plus a protected resource, served via httpx.MockTransport."""

    def __init__(self):
        self.token_responses: list[httpx.Response] = []
        self.token_requests: list[dict[str, str]] = []
        self.resource_requests: list[httpx.Request] = []
        self.token_delay = 0.0

    def queue_token(self, status_code: int = 200, **body) -> None:
        self.token_responses.append(httpx.Response(status_code, json=body))

    def queue_response(self, response: httpx.Response) -> None:
        self.token_responses.append(response)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token":
            form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
            self.token_requests.append(form)
            return self.token_responses.pop(0)

        self.resource_requests.append(request)
        return httpx.Response(200, text=f"payload for {request.headers.get('Authorization')}")

    def _sync_handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token" and self.token_delay:
            time.sleep(self.token_delay)
        return self.handle(request)

    async def _async_handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token" and self.token_delay:
            await anyio.sleep(self.token_delay)
        return self.handle(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._sync_handler)

    @property
    def async_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._async_handler)


@pytest.fixture
def mock_server():
    return MockOAuthServer()


@pytest.fixture
def config():
    return Config(
        client_id="cl13nt1d",
        client_secret="s3cr3t",
        scope="https://example.net/scope",
        auth_url="https://auth.example.com/auth",
        token_url="https://auth.example.com/token",
    )


@pytest.fixture
def fresh_token():
    return Token(
        access_token="token1",
        refresh_token="refreshtoken1",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def stale_token():
    return Token(
        access_token="token1",
        refresh_token="refreshtoken1",
        expiry=datetime.now(timezone.utc),
    )
