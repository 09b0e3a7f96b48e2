"""CLI entry point for the autorefresh tool.

This module is the composition root of the application.  It is the only
place that reads the client configuration from the environment and builds
a concrete :class:`~autorefresh.client.AuthClient`.
"""

import json
import logging
import sys
from enum import Enum

# Ensure UTF-8 output on Windows where stdout may default to cp1252.
# reconfigure() is a no-op when encoding is already utf-8.
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import requests
import typer
from rich.console import Console
from rich.logging import RichHandler

from autorefresh.client import AuthClient
from autorefresh.core.exceptions import (
    ConfigurationError,
    MalformedAuthResponseError,
    RedirectRequiredError,
)
from autorefresh.transport.config import ClientConfig

app = typer.Typer(help="Call an API with automatic token refresh.")

console = Console(legacy_windows=False)

_ENV_CLIENT_ID = "AUTOREFRESH_CLIENT_ID"
_ENV_CLIENT_SECRET = "AUTOREFRESH_CLIENT_SECRET"


# ---------------------------------------------------------------------------
# Output format
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Supported output formats for the request command."""

    json = "json"
    raw = "raw"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_client() -> AuthClient:
    """Build an :class:`AuthClient` from ``AUTOREFRESH_*`` variables.

    Returns:
        A new :class:`~autorefresh.client.AuthClient` instance.

    Raises:
        typer.Exit: If the configuration is incomplete.
    """
    try:
        config = ClientConfig.from_env()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return AuthClient(config)


def _describe_http_error(e: requests.RequestException) -> str:
    """Return a one-line description of a transport error."""
    if e.response is not None:
        return f"HTTP {e.response.status_code} {e.response.reason or ''}".strip()
    return str(e)


def _login(client: AuthClient, client_id: str, client_secret: str) -> None:
    """Log ``client`` in, exiting with status 1 on failure."""
    if not client_id or not client_secret:
        console.print(
            "[red]Client credentials are not set.[/red]\n"
            f"Pass --client-id/--client-secret or export "
            f"{_ENV_CLIENT_ID} and {_ENV_CLIENT_SECRET}."
        )
        raise typer.Exit(1)
    try:
        client.login(client_id, client_secret)
    except requests.RequestException as e:
        console.print(f"[red]Login failed:[/red] {_describe_http_error(e)}")
        raise typer.Exit(1)
    except MalformedAuthResponseError as e:
        console.print(f"[red]Login failed:[/red] {e}")
        raise typer.Exit(1)


def _client_id_option():
    return typer.Option(
        "", "--client-id", envvar=_ENV_CLIENT_ID, help="Client identifier."
    )


def _client_secret_option():
    return typer.Option(
        "",
        "--client-secret",
        envvar=_ENV_CLIENT_SECRET,
        help="Client secret.",
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log requests and token refreshes."
    ),
):
    """Call an API with automatic token refresh."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[
                RichHandler(
                    console=Console(stderr=True, legacy_windows=False),
                    show_path=False,
                )
            ],
        )


@app.command()
def login(
    client_id: str = _client_id_option(),
    client_secret: str = _client_secret_option(),
):
    """Check that the client credentials are accepted by the server."""
    with _get_client() as client:
        _login(client, client_id, client_secret)
    console.print("[green]✓ Logged in.[/green]")


@app.command()
def request(
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST."),
    path: str = typer.Argument(..., help="Path relative to the base URL."),
    data: str = typer.Option(
        None, "--data", "-d", help="JSON request body."
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.json, "--output", "-o", help="Output format."
    ),
    client_id: str = _client_id_option(),
    client_secret: str = _client_secret_option(),
):
    """Log in, then send one authenticated request and print its body."""
    body = None
    if data is not None:
        try:
            body = json.loads(data)
        except json.JSONDecodeError as e:
            console.print(f"[red]--data is not valid JSON:[/red] {e}")
            raise typer.Exit(1)

    with _get_client() as client:
        _login(client, client_id, client_secret)
        try:
            result = client.request(method, path, body)
        except RedirectRequiredError:
            console.print(
                "[red]✗ Session expired and could not be refreshed.[/red]"
            )
            console.print("Log in again to continue.")
            raise typer.Exit(1)
        except requests.RequestException as e:
            console.print(
                f"[red]Request failed:[/red] {_describe_http_error(e)}"
            )
            raise typer.Exit(1)

    if output == OutputFormat.json:
        print(json.dumps(result, indent=2))
    elif result is not None:
        print(result)
