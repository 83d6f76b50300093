"""
oauth2-transport CLI - walk through the authorization-code flow from a terminal.

Client registration is read from OAUTH2_* environment variables (or an env
file). Typical use:

    oauth2-transport auth-url --state xyz        # open the printed URL, approve
    oauth2-transport fetch https://api.example.com/me --code <code>
"""

import logging
from datetime import datetime

import click
import httpx

from oauth2_transport.client.auth import Transport
from oauth2_transport.errors import ConfigError, OAuthError
from oauth2_transport.settings import OAuth2Settings
from oauth2_transport.shared.auth import Token

logger = logging.getLogger(__name__)


def _make_transport(ctx: click.Context, token: Token | None = None) -> Transport:
    settings: OAuth2Settings = ctx.obj["settings"]
    try:
        config = settings.to_config()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    return Transport(config, token, http_transport=ctx.obj.get("http_transport"))


@click.group()
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read OAUTH2_* settings from this file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, env_file: str | None, log_level: str) -> None:
    """OAuth2 authorization-code helper."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    if env_file:
        ctx.obj["settings"] = OAuth2Settings(_env_file=env_file)  # type: ignore[call-arg]
    elif "settings" not in ctx.obj:
        ctx.obj["settings"] = OAuth2Settings()


@cli.command("auth-url")
@click.option("--state", default=None, help="Opaque value echoed back on the redirect")
@click.pass_context
def auth_url(ctx: click.Context, state: str | None) -> None:
    """Print the URL to send the user to for consent."""
    transport = _make_transport(ctx)
    click.echo(transport.config.auth_code_url(state))


@cli.command()
@click.argument("code")
@click.pass_context
def exchange(ctx: click.Context, code: str) -> None:
    """Exchange CODE for a token and print it as JSON."""
    transport = _make_transport(ctx)
    try:
        token = transport.exchange(code)
    except OAuthError as e:
        raise click.ClickException(str(e)) from e
    click.echo(token.model_dump_json())


@cli.command()
@click.argument("url")
@click.option("--code", default=None, help="Authorization code to exchange first")
@click.option("--access-token", default=None, help="Use a previously issued access token")
@click.option("--refresh-token", default=None)
@click.option("--expiry", type=click.DateTime(), default=None, help="Expiry of --access-token (UTC)")
@click.option("--show-token", is_flag=True, help="Print the final token as JSON on stderr")
@click.pass_context
def fetch(
    ctx: click.Context,
    url: str,
    code: str | None,
    access_token: str | None,
    refresh_token: str | None,
    expiry: datetime | None,
    show_token: bool,
) -> None:
    """GET URL with a bearer token and print the response body."""
    if bool(code) == bool(access_token):
        raise click.UsageError("Pass exactly one of --code or --access-token")

    token = None
    if access_token:
        token = Token(access_token=access_token, refresh_token=refresh_token, expiry=expiry)

    transport = _make_transport(ctx, token)
    try:
        if code:
            transport.exchange(code)
        with transport.client() as client:
            response = client.get(url)
    except OAuthError as e:
        raise click.ClickException(str(e)) from e
    except httpx.HTTPError as e:
        raise click.ClickException(f"Request to {url} failed: {e!r}") from e

    logger.info(f"GET {url} -> HTTP {response.status_code}")
    click.echo(response.text)
    if show_token and transport.token is not None:
        click.echo(transport.token.model_dump_json(), err=True)

    if response.is_error:
        raise click.ClickException(f"{url} returned HTTP {response.status_code}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
