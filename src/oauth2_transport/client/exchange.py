"""
Token endpoint calls shared by the initial code exchange and token refresh.

Request building and response decoding are kept free of I/O so that the
synchronous and asynchronous send paths go through exactly the same logic.
"""

import logging

import httpx
from pydantic import ValidationError

from oauth2_transport.errors import ExchangeError, OAuthError, RefreshError, stringify_pydantic_error
from oauth2_transport.shared.auth import Config, ErrorResponse, OAuthTokenResponse, Token

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Turns an authorization code or a refresh token into a fresh Token."""

    def __init__(self, config: Config):
        self.config = config

    @property
    def token_url(self) -> str:
        return str(self.config.token_url)

    def _token_request(self, data: dict[str, str]) -> httpx.Request:
        data["client_id"] = self.config.client_id
        if self.config.has_client_secret:
            data["client_secret"] = self.config.client_secret.get_secret_value()

        return httpx.Request(
            "POST",
            self.token_url,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
        )

    def exchange_request(self, code: str) -> httpx.Request:
        """Build the authorization_code grant request."""
        if not code:
            raise ExchangeError("Authorization code must not be empty", url=self.token_url)

        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.redirect_url,
            }
        )

    def refresh_request(self, token: Token) -> httpx.Request:
        """Build the refresh_token grant request."""
        if not token.can_refresh:
            raise RefreshError("No refresh token available", url=self.token_url)

        assert token.refresh_token is not None
        return self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": token.refresh_token,
            }
        )

    def handle_response(
        self,
        response: httpx.Response,
        error_class: type[OAuthError],
        previous: Token | None = None,
    ) -> Token:
        """Decode a token endpoint response, raising error_class on failure."""
        action = "Token refresh" if error_class is RefreshError else "Token exchange"

        if not response.is_success:
            error, description = self._error_details(response)
            raise error_class(
                f"{action} failed",
                url=self.token_url,
                status_code=response.status_code,
                error=error,
                error_description=description,
            )

        try:
            token_response = OAuthTokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise error_class(
                f"{action} returned an invalid token response: {stringify_pydantic_error(e)}",
                url=self.token_url,
                status_code=response.status_code,
            ) from e

        logger.debug(f"{action} successful (HTTP {response.status_code})")
        return token_response.to_token(previous.refresh_token if previous else None)

    def _error_details(self, response: httpx.Response) -> tuple[str | None, str | None]:
        try:
            error_response = ErrorResponse.model_validate_json(response.content)
        except ValidationError:
            text = response.text.strip()
            return None, text[:200] or None
        return error_response.error, error_response.error_description

    def _send(self, client: httpx.Client, request: httpx.Request, error_class: type[OAuthError]) -> httpx.Response:
        logger.debug(f"Sending token request to {request.url}")
        try:
            return client.send(request)
        except httpx.HTTPError as e:
            raise error_class(f"Token endpoint request failed: {e!r}", url=self.token_url) from e

    async def _asend(
        self, client: httpx.AsyncClient, request: httpx.Request, error_class: type[OAuthError]
    ) -> httpx.Response:
        logger.debug(f"Sending token request to {request.url}")
        try:
            return await client.send(request)
        except httpx.HTTPError as e:
            raise error_class(f"Token endpoint request failed: {e!r}", url=self.token_url) from e

    def exchange(self, code: str, client: httpx.Client) -> Token:
        """Exchange an authorization code for a token."""
        request = self.exchange_request(code)
        response = self._send(client, request, ExchangeError)
        return self.handle_response(response, ExchangeError)

    async def aexchange(self, code: str, client: httpx.AsyncClient) -> Token:
        """Exchange an authorization code for a token."""
        request = self.exchange_request(code)
        response = await self._asend(client, request, ExchangeError)
        return self.handle_response(response, ExchangeError)

    def refresh(self, token: Token, client: httpx.Client) -> Token:
        """Obtain a new token using token's refresh token."""
        request = self.refresh_request(token)
        response = self._send(client, request, RefreshError)
        return self.handle_response(response, RefreshError, previous=token)

    async def arefresh(self, token: Token, client: httpx.AsyncClient) -> Token:
        """Obtain a new token using token's refresh token."""
        request = self.refresh_request(token)
        response = await self._asend(client, request, RefreshError)
        return self.handle_response(response, RefreshError, previous=token)
