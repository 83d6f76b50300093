from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from oauth2_transport.errors import ConfigError, stringify_pydantic_error

OUT_OF_BAND_REDIRECT = "oob"


class Config(BaseModel):
    """
    Static configuration for one OAuth2 client registration.

    Shared read-only by every request a Transport issues, so it is frozen once
    constructed. Validation failures are reported as ConfigError.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr = SecretStr("")
    # passed through verbatim; providers disagree on space vs comma separators
    scope: str | None = None
    auth_url: AnyHttpUrl
    token_url: AnyHttpUrl
    redirect_url: str = OUT_OF_BAND_REDIRECT

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid OAuth2 client configuration:\n{stringify_pydantic_error(e)}") from e

    @field_validator("redirect_url")
    @classmethod
    def _default_redirect(cls, value: str) -> str:
        return value or OUT_OF_BAND_REDIRECT

    @property
    def has_client_secret(self) -> bool:
        return bool(self.client_secret.get_secret_value())

    def auth_code_url(self, state: str | None = None, **extra_params: str) -> str:
        """
        Build the URL the user agent is sent to for consent.

        Query parameters already present on auth_url are kept; extra_params lets
        callers add provider-specific parameters such as access_type=offline.
        """
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
        }
        if self.scope:
            params["scope"] = self.scope
        if state is not None:
            params["state"] = state
        params.update(extra_params)

        return str(httpx.URL(str(self.auth_url)).copy_merge_params(params))


class Token(BaseModel):
    """
    An issued access/refresh token pair.

    Tokens are never modified in place; a refresh produces a new instance.
    An expiry of None means the token never expires.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1, repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    expiry: datetime | None = None

    @field_validator("expiry")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def expired(self, now: datetime | None = None) -> bool:
        """Check if the token is expired."""
        if self.expiry is None:
            return False
        return self.expiry <= (now or datetime.now(timezone.utc))

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def to_auth_header(self) -> dict[str, str]:
        """Convert token to Authorization header."""
        return {"Authorization": f"Bearer {self.access_token}"}


class OAuthTokenResponse(BaseModel):
    """
    Token endpoint success response.
    See https://datatracker.ietf.org/doc/html/rfc6749#section-5.1
    """

    access_token: str = Field(..., min_length=1)
    token_type: str | None = None
    expires_in: int | None = Field(default=None, ge=0)
    refresh_token: str | None = None
    scope: str | None = None

    def to_token(self, previous_refresh_token: str | None = None) -> Token:
        # a zero or missing lifetime means the server did not bound it
        expiry = None
        if self.expires_in:
            expiry = datetime.now(timezone.utc) + timedelta(seconds=self.expires_in)

        return Token(
            access_token=self.access_token,
            refresh_token=self.refresh_token or previous_refresh_token,
            expiry=expiry,
        )


class ErrorResponse(BaseModel):
    """
    Token endpoint error response.
    See https://datatracker.ietf.org/doc/html/rfc6749#section-5.2
    """

    error: str
    error_description: str | None = None
    error_uri: str | None = None
