"""CLI commands for inspecting a running scribbl-relay server.

The relay keeps all state in memory, so these commands talk to a running
process over its HTTP status endpoints rather than reading any storage.
"""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import quote

import httpx
import rich_click as click
from litestar.plugins import CLIPluginProtocol
from rich.console import Console
from rich.table import Table

console = Console()

DEFAULT_RELAY_URL = "http://127.0.0.1:8000"


def get_relay_url() -> str:
    """Get the base URL of the relay to query from the environment."""
    return os.environ.get("RELAY_URL", DEFAULT_RELAY_URL).rstrip("/")


def fetch_json(url: str, path: str, timeout: float = 5.0) -> dict[str, Any]:
    """GET a JSON document from the relay.

    Args:
        url: Base URL of the relay.
        path: Path of the endpoint, starting with "/".
        timeout: Request timeout in seconds.

    Returns:
        The decoded JSON body.

    Raises:
        httpx.HTTPError: If the relay cannot be reached or answers with an error status.
    """
    response = httpx.get(f"{url}{path}", timeout=timeout)
    response.raise_for_status()
    return response.json()


@click.group(name="relay", help="Inspect a running drawing relay.")
def relay_group() -> None:
    """Inspect a running drawing relay."""


@relay_group.command(name="status", help="Show process status and relay statistics.")
@click.option("--url", "-u", default=None, help="Base URL of the relay (defaults to $RELAY_URL)")
def relay_status(url: str | None) -> None:
    """Show process status and relay statistics."""
    base_url = (url or get_relay_url()).rstrip("/")
    try:
        status = fetch_json(base_url, "/")
        stats = fetch_json(base_url, "/stats")
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach relay at {base_url}: {e}[/red]")
        raise SystemExit(1) from e

    console.print(f"[green]{status['status']}[/green] [dim]({status['timestamp']})[/dim]")

    table = Table(title=f"Relay {base_url}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Active rooms", str(status["activeRooms"]))
    for key, value in stats.items():
        if key == "started_at":
            continue
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)


@relay_group.command(name="room", help="Show whether a room exists and how busy it is.")
@click.argument("room_id")
@click.option("--url", "-u", default=None, help="Base URL of the relay (defaults to $RELAY_URL)")
def relay_room(room_id: str, url: str | None) -> None:
    """Show whether a room exists and how busy it is."""
    base_url = (url or get_relay_url()).rstrip("/")
    try:
        room = fetch_json(base_url, "/room/" + quote(room_id, safe=""))
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach relay at {base_url}: {e}[/red]")
        raise SystemExit(1) from e

    if not room["exists"]:
        console.print(f"[yellow]Room {room_id!r} does not exist[/yellow]")
        return

    table = Table(title=f"Room {room_id}")
    table.add_column("Members", style="cyan", justify="right")
    table.add_column("History length", style="green", justify="right")
    table.add_row(str(room["userCount"]), str(room["drawHistoryLength"]))
    console.print(table)


class RelayCLIPlugin(CLIPluginProtocol):
    """CLI plugin that adds the ``relay`` command group.

    Subcommands:
    - status: Process status and telemetry of a running relay
    - room: Status of a single room
    """

    def on_cli_init(self, cli: click.Group) -> None:
        """Register the relay command group."""
        cli.add_command(relay_group)
