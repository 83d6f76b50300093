"""Utilities for creating standardized httpx clients."""

from typing import Any

import httpx

DEFAULT_TIMEOUT = 30.0


def _client_kwargs(
    headers: dict[str, str] | None,
    timeout: httpx.Timeout | float | None,
    auth: httpx.Auth | None,
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"follow_redirects": True}

    if timeout is None:
        kwargs["timeout"] = httpx.Timeout(DEFAULT_TIMEOUT)
    else:
        kwargs["timeout"] = timeout

    if headers is not None:
        kwargs["headers"] = headers

    if auth is not None:
        kwargs["auth"] = auth

    return kwargs


def create_http_client(
    headers: dict[str, str] | None = None,
    timeout: httpx.Timeout | float | None = None,
    auth: httpx.Auth | None = None,
    transport: httpx.BaseTransport | None = None,
    **kwargs: Any,
) -> httpx.Client:
    """Create a synchronous httpx client with the library defaults.

    Redirects are followed and a 30 second timeout applies unless overridden.
    Passing a transport replaces the default connection pool, which is how
    tests and custom network stacks plug in.
    """
    options = _client_kwargs(headers, timeout, auth)
    options.update(kwargs)
    if transport is not None:
        options["transport"] = transport
    return httpx.Client(**options)


def create_async_http_client(
    headers: dict[str, str] | None = None,
    timeout: httpx.Timeout | float | None = None,
    auth: httpx.Auth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Async counterpart of create_http_client."""
    options = _client_kwargs(headers, timeout, auth)
    options.update(kwargs)
    if transport is not None:
        options["transport"] = transport
    return httpx.AsyncClient(**options)
