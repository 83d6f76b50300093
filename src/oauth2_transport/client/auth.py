"""
OAuth2 bearer authentication for HTTPX with just-in-time token refresh.

The Transport holds one Config and one current Token. Every request sent
through a client that uses it as `auth` checks the token first, refreshes it
when expired, and goes out with an `Authorization: Bearer` header.
"""

import logging
import threading
from collections.abc import AsyncGenerator, Generator
from enum import Enum, auto
from typing import Any

import anyio
import httpx

from oauth2_transport.client.exchange import TokenExchanger
from oauth2_transport.errors import RefreshError, Unauthenticated
from oauth2_transport.shared._httpx_utils import create_async_http_client, create_http_client
from oauth2_transport.shared.auth import Config, Token

logger = logging.getLogger(__name__)


class TransportState(Enum):
    """Token lifecycle states."""

    NO_TOKEN = auto()
    FRESH = auto()
    STALE = auto()
    UNAUTHORIZED = auto()


class Transport(httpx.Auth):
    """
    Authentication for httpx that injects and refreshes OAuth2 bearer tokens.

    Refresh happens lazily on the request path, never in the background. Only
    one refresh runs at a time; requests that find the token stale while a
    refresh is in flight wait for it and reuse its result.

    A failed refresh keeps the old token and moves the Transport to
    UNAUTHORIZED. Requests then fail fast until exchange(), refresh() or
    set_token() succeeds.
    """

    def __init__(
        self,
        config: Config,
        token: Token | None = None,
        *,
        http_transport: httpx.BaseTransport | None = None,
        async_http_transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout | float | None = None,
    ):
        self.config = config
        self.exchanger = TokenExchanger(config)
        self.http_transport = http_transport
        self.async_http_transport = async_http_transport
        self.timeout = timeout

        self._token = token
        self._refresh_failure: RefreshError | None = None
        self._lock = threading.Lock()
        self._async_lock = anyio.Lock()

    @property
    def token(self) -> Token | None:
        """The current token, if any."""
        return self._token

    @property
    def state(self) -> TransportState:
        token = self._token
        if token is None:
            return TransportState.NO_TOKEN
        if self._refresh_failure is not None:
            return TransportState.UNAUTHORIZED
        if token.expired():
            return TransportState.STALE
        return TransportState.FRESH

    def set_token(self, token: Token) -> None:
        """Replace the current token, e.g. with one restored from storage."""
        with self._lock:
            self._replace_token(token)

    def _replace_token(self, token: Token) -> None:
        self._refresh_failure = None
        self._token = token
        logger.debug(f"Current token replaced (expiry: {token.expiry or 'never'})")

    def _usable_token(self) -> Token:
        token = self._token
        if token is None:
            raise Unauthenticated("No token available; call exchange() before sending requests")

        failure = self._refresh_failure
        if failure is not None:
            raise RefreshError(
                "A previous token refresh failed; call exchange() or refresh() to re-authorize",
                url=failure.url,
                status_code=failure.status_code,
                error=failure.error,
                error_description=failure.error_description,
            ) from failure

        return token

    def _record_refresh_failure(self, error: RefreshError) -> None:
        logger.warning(f"Token refresh failed: {error}")
        self._refresh_failure = error

    def _authorize(self, request: httpx.Request, token: Token) -> httpx.Request:
        """Return a copy of request carrying the bearer header."""
        headers = request.headers.copy()
        headers.update(token.to_auth_header())
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            stream=request.stream,
            extensions=dict(request.extensions),
        )

    # Synchronous path

    def _token_client(self) -> httpx.Client:
        return create_http_client(timeout=self.timeout, transport=self.http_transport)

    def _refresh_locked(self, token: Token) -> Token:
        logger.debug("Refreshing access token")
        try:
            with self._token_client() as client:
                new_token = self.exchanger.refresh(token, client)
        except RefreshError as e:
            self._record_refresh_failure(e)
            raise

        self._replace_token(new_token)
        return new_token

    def _fresh_token(self) -> Token:
        token = self._usable_token()
        if not token.expired():
            return token

        with self._lock:
            # another thread may have refreshed while we waited
            token = self._usable_token()
            if token.expired():
                token = self._refresh_locked(token)
        return token

    def exchange(self, code: str) -> Token:
        """Exchange an authorization code for a token and make it current."""
        with self._lock:
            with self._token_client() as client:
                token = self.exchanger.exchange(code, client)
            self._replace_token(token)
        logger.debug("Authorization code exchanged")
        return token

    def refresh(self) -> Token:
        """Refresh the current token now, regardless of its expiry."""
        with self._lock:
            token = self._token
            if token is None:
                raise Unauthenticated("No token to refresh; call exchange() first")
            return self._refresh_locked(token)

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._fresh_token()
        yield self._authorize(request, token)

    def client(self, **kwargs: Any) -> httpx.Client:
        """Create an httpx.Client that authenticates through this Transport."""
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("transport", self.http_transport)
        return create_http_client(auth=self, **kwargs)

    # Asynchronous path

    def _async_token_client(self) -> httpx.AsyncClient:
        return create_async_http_client(timeout=self.timeout, transport=self.async_http_transport)

    async def _arefresh_locked(self, token: Token) -> Token:
        logger.debug("Refreshing access token")
        try:
            async with self._async_token_client() as client:
                new_token = await self.exchanger.arefresh(token, client)
        except RefreshError as e:
            self._record_refresh_failure(e)
            raise

        self._replace_token(new_token)
        return new_token

    async def _afresh_token(self) -> Token:
        token = self._usable_token()
        if not token.expired():
            return token

        async with self._async_lock:
            # another task may have refreshed while we waited
            token = self._usable_token()
            if token.expired():
                token = await self._arefresh_locked(token)
        return token

    async def aexchange(self, code: str) -> Token:
        """Exchange an authorization code for a token and make it current."""
        async with self._async_lock:
            async with self._async_token_client() as client:
                token = await self.exchanger.aexchange(code, client)
            self._replace_token(token)
        logger.debug("Authorization code exchanged")
        return token

    async def arefresh(self) -> Token:
        """Refresh the current token now, regardless of its expiry."""
        async with self._async_lock:
            token = self._token
            if token is None:
                raise Unauthenticated("No token to refresh; call exchange() first")
            return await self._arefresh_locked(token)

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._afresh_token()
        yield self._authorize(request, token)

    def async_client(self, **kwargs: Any) -> httpx.AsyncClient:
        """Create an httpx.AsyncClient that authenticates through this Transport."""
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("transport", self.async_http_transport)
        return create_async_http_client(auth=self, **kwargs)
