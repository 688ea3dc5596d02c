"""Command line interface for quick API lookups."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from eve_lib.api_client.dispatcher import get_default_dispatcher
from eve_lib.api_client.errors import DispatchError, InvalidApiKeyError
from eve_lib.crest.client import EveCrest
from eve_lib.eve_online.api_key import ApiKey
from eve_lib.logging_config import configure_logging, get_logger

app = typer.Typer(
    name="evelib",
    help="Query the EVE Online XML API and CREST",
)
console = Console()
logger = get_logger(__name__)
T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, releasing the dispatcher's session on that loop afterwards."""

    async def _run() -> T:
        try:
            return await coro
        finally:
            await get_default_dispatcher().aclose()

    return asyncio.run(_run())


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(1)


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging()


@app.command()
def key_info(
    key_id: int = typer.Argument(..., help="API key ID"),
    vcode: str = typer.Argument(..., help="Verification code"),
) -> None:
    """Validate a key and show its access mask, type and expiry."""
    key = ApiKey(key_id, vcode)

    try:
        if not key.is_valid:
            console.print(f"[bold yellow]Key {key_id} was rejected[/bold yellow]")
            raise typer.Exit(2)

        table = Table(title=f"API key {key_id}")
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        table.add_row("Type", key.key_type.value)
        table.add_row("Access mask", str(key.access_mask))
        expires = key.expire_date
        table.add_row("Expires", expires.isoformat() if expires else "never")
        console.print(table)
    except DispatchError as e:
        raise _fail(str(e)) from e
    finally:
        get_default_dispatcher().close()


@app.command()
def characters(
    key_id: int = typer.Argument(..., help="API key ID"),
    vcode: str = typer.Argument(..., help="Verification code"),
) -> None:
    """List the characters a key exposes."""
    key = ApiKey(key_id, vcode)

    try:
        found = run_async(key.get_characters())
    except (DispatchError, InvalidApiKeyError, ValueError) as e:
        raise _fail(str(e)) from e
    finally:
        get_default_dispatcher().close()

    table = Table(title=f"Characters on key {key_id}")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="green")
    for character in found:
        table.add_row(str(character.character_id), character.character_name)
    console.print(table)


@app.command()
def market_history(
    region_id: int = typer.Argument(..., help="Region ID, e.g. 10000002 for The Forge"),
    type_id: int = typer.Argument(..., help="Item type ID, e.g. 34 for Tritanium"),
    days: int = typer.Option(10, "--days", "-d", help="Number of most recent days to show"),
) -> None:
    """Show daily market history of an item type in a region."""
    crest = EveCrest()

    try:
        history = run_async(crest.get_market_history(region_id, type_id))
    except DispatchError as e:
        raise _fail(str(e)) from e

    table = Table(title=f"Market history: type {type_id} in region {region_id}")
    table.add_column("Date")
    table.add_column("Low", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Orders", justify="right")

    for entry in sorted(history.items, key=lambda e: e.date)[-days:]:
        table.add_row(
            entry.date.date().isoformat(),
            f"{entry.low_price:,.2f}",
            f"{entry.avg_price:,.2f}",
            f"{entry.high_price:,.2f}",
            f"{entry.volume:,}",
            f"{entry.order_count:,}",
        )
    console.print(table)
    logger.debug("Rendered market history", rows=min(days, len(history.items)))


if __name__ == "__main__":
    app()
