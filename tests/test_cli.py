import json

import httpx
import pytest
from click.testing import CliRunner

from oauth2_transport.cli import cli
from oauth2_transport.settings import OAuth2Settings


@pytest.fixture
def settings():
    return OAuth2Settings(
        _env_file=None,  # type: ignore[call-arg]
        client_id="cl13nt1d",
        client_secret="s3cr3t",
        scope="read",
        auth_url="https://auth.example.com/auth",
        token_url="https://auth.example.com/token",
    )


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, settings, mock_server, *args):
    return runner.invoke(cli, list(args), obj={"settings": settings, "http_transport": mock_server.transport})


def test_auth_url(runner, settings, mock_server):
    result = invoke(runner, settings, mock_server, "auth-url", "--state", "xyz")

    assert result.exit_code == 0, result.output
    url = httpx.URL(result.output.strip())
    assert url.params["client_id"] == "cl13nt1d"
    assert url.params["state"] == "xyz"
    assert url.params["scope"] == "read"
    assert mock_server.token_requests == []


def test_exchange_prints_token(runner, settings, mock_server):
    mock_server.queue_token(access_token="token1", refresh_token="refreshtoken1", expires_in=3600)

    result = invoke(runner, settings, mock_server, "exchange", "c0d3")

    assert result.exit_code == 0, result.output
    token = json.loads(result.output)
    assert token["access_token"] == "token1"
    assert token["refresh_token"] == "refreshtoken1"
    assert mock_server.token_requests[0]["code"] == "c0d3"


def test_exchange_failure(runner, settings, mock_server):
    mock_server.queue_token(400, error="invalid_grant")

    result = invoke(runner, settings, mock_server, "exchange", "bad")

    assert result.exit_code == 1
    assert "invalid_grant" in result.output


def test_fetch_with_code(runner, settings, mock_server):
    mock_server.queue_token(access_token="token1", refresh_token="refreshtoken1", expires_in=3600)

    result = invoke(runner, settings, mock_server, "fetch", "https://api.example.com/secure", "--code", "c0d3")

    assert result.exit_code == 0, result.output
    assert "payload for Bearer token1" in result.output


def test_fetch_refreshes_expired_token(runner, settings, mock_server):
    mock_server.queue_token(access_token="token2", expires_in=3600)

    result = invoke(
        runner,
        settings,
        mock_server,
        "fetch",
        "https://api.example.com/secure",
        "--access-token",
        "token1",
        "--refresh-token",
        "refreshtoken1",
        "--expiry",
        "2020-01-01T00:00:00",
    )

    assert result.exit_code == 0, result.output
    assert "payload for Bearer token2" in result.output
    assert mock_server.token_requests[0]["refresh_token"] == "refreshtoken1"


def test_fetch_requires_one_credential(runner, settings, mock_server):
    result = invoke(runner, settings, mock_server, "fetch", "https://api.example.com/secure")

    assert result.exit_code == 2
    assert mock_server.resource_requests == []


def test_missing_configuration(runner, mock_server, monkeypatch):
    for name in ("CLIENT_ID", "AUTH_URL", "TOKEN_URL"):
        monkeypatch.delenv(f"OAUTH2_{name}", raising=False)
    empty = OAuth2Settings(_env_file=None)  # type: ignore[call-arg]

    result = invoke(runner, empty, mock_server, "auth-url")

    assert result.exit_code == 1
    assert "OAUTH2_CLIENT_ID" in result.output
