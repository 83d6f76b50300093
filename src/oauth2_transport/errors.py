from pydantic import ValidationError


class OAuthError(Exception):
    """
    Base class for all OAuth errors.

    Carries whatever context was available when the failure happened: the
    endpoint that was called, the HTTP status it answered with, and the RFC 6749
    error code and description from the response body.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code
        self.error = error
        self.error_description = error_description

    def __str__(self) -> str:
        parts = [self.message]
        if self.error:
            parts.append(f"error={self.error}")
        if self.error_description:
            parts.append(f"description={self.error_description!r}")
        if self.status_code is not None:
            parts.append(f"HTTP {self.status_code}")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


class ConfigError(OAuthError):
    """Raised when a client configuration is missing or has invalid fields."""

    pass


class ExchangeError(OAuthError):
    """Raised when exchanging an authorization code for a token fails."""

    pass


class RefreshError(OAuthError):
    """Raised when a token could not be refreshed."""

    pass


class Unauthenticated(OAuthError):
    """Raised when a request is sent before any token has been obtained."""

    pass


def stringify_pydantic_error(validation_error: ValidationError) -> str:
    return "\n".join(f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in validation_error.errors())
