"""Stockroom CLI — run the server and manage widgets from the terminal.

Usage:
    stockroom serve                      # Start the API server (uvicorn)
    stockroom list                       # List widgets
    stockroom get 1                      # Show one widget
    stockroom add "widget one" 12        # Create a widget
    stockroom update 1 "renamed" 46      # Update a widget
    stockroom delete 1                   # Delete a widget
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import click
import httpx

from stockroom import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8080"


def _api_url(override: Optional[str] = None) -> str:
    return (override or os.environ.get("STOCKROOM_API_URL", DEFAULT_API_URL)).rstrip("/")


def _client(ctx: click.Context) -> httpx.Client:
    """Build an HTTP client pointed at the Stockroom server.

    Tests inject a transport through ctx.obj["transport"].
    """
    obj = ctx.obj or {}
    return httpx.Client(
        base_url=_api_url(obj.get("api_url")),
        timeout=10.0,
        transport=obj.get("transport"),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _check(resp: httpx.Response, widget_id: Optional[int] = None) -> None:
    """Exit with a readable message on 404 or any other error status."""
    if resp.status_code == 404:
        _fail(f"widget {widget_id} not found" if widget_id is not None else "not found")
    if resp.is_error:
        _fail(f"server returned {resp.status_code}: {resp.text}")


def _format_millis(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _print_widget(widget: dict, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(widget, indent=2))
        return
    click.echo(
        f"#{widget['id']}  {widget['name']}  qty={widget['quantity']}  "
        f"updated={_format_millis(widget['dateUpdated'])}"
    )


json_option = click.option("--json", "as_json", is_flag=True, help="Print raw JSON")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="stockroom")
@click.option("--api-url", envvar="STOCKROOM_API_URL", help="Server base URL")
@click.pass_context
def main(ctx: click.Context, api_url: Optional[str]):
    """Stockroom — widget inventory with live change notifications."""
    ctx.ensure_object(dict)
    if api_url:
        ctx.obj["api_url"] = api_url


@main.command()
@click.option("--host", default=None, help="Bind address (default: STOCKROOM_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: STOCKROOM_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API + WebSocket server."""
    import uvicorn

    from stockroom.config import settings

    uvicorn.run(
        "stockroom.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("list")
@json_option
@click.pass_context
def list_widgets(ctx: click.Context, as_json: bool):
    """List all widgets."""
    with _client(ctx) as c:
        r = c.get("/widgets")
    _check(r)
    widgets = r.json()

    if as_json:
        click.echo(json.dumps(widgets, indent=2))
        return
    if not widgets:
        click.echo("No widgets.")
        return
    for w in widgets:
        w["updated"] = _format_millis(w["dateUpdated"])
    _print_table(widgets, [
        ("ID", "id", 6),
        ("NAME", "name", 30),
        ("QTY", "quantity", 8),
        ("UPDATED (UTC)", "updated", 19),
    ])


@main.command()
@click.argument("widget_id", type=int)
@json_option
@click.pass_context
def get(ctx: click.Context, widget_id: int, as_json: bool):
    """Show one widget."""
    with _client(ctx) as c:
        r = c.get(f"/widgets/{widget_id}")
    _check(r, widget_id)
    _print_widget(r.json(), as_json)


@main.command()
@click.argument("name")
@click.argument("quantity", type=int)
@json_option
@click.pass_context
def add(ctx: click.Context, name: str, quantity: int, as_json: bool):
    """Create a widget."""
    with _client(ctx) as c:
        r = c.post("/widgets", json={"name": name, "quantity": quantity})
    _check(r)
    if not as_json:
        click.secho("Created:", fg="green")
    _print_widget(r.json(), as_json)


@main.command()
@click.argument("widget_id", type=int)
@click.argument("name")
@click.argument("quantity", type=int)
@json_option
@click.pass_context
def update(ctx: click.Context, widget_id: int, name: str, quantity: int, as_json: bool):
    """Update a widget's name and quantity."""
    with _client(ctx) as c:
        r = c.put("/widgets", json={"id": widget_id, "name": name, "quantity": quantity})
    _check(r, widget_id)
    if not as_json:
        click.secho("Updated:", fg="green")
    _print_widget(r.json(), as_json)


@main.command()
@click.argument("widget_id", type=int)
@click.pass_context
def delete(ctx: click.Context, widget_id: int):
    """Delete a widget."""
    with _client(ctx) as c:
        r = c.delete(f"/widgets/{widget_id}")
    _check(r, widget_id)
    click.secho(f"Deleted widget {widget_id}", fg="green")


if __name__ == "__main__":
    main()
