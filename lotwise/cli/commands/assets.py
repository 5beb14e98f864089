"""Asset registry commands."""

import logging

import click
from rich.console import Console
from rich.table import Table

from lotwise.cli.error_handler import handle_cli_errors
from lotwise.cli.formatting import MISSING, format_quantity
from lotwise.cli.validators import validate_ticker
from lotwise.core.lots.ledger import TaxLotLedger
from lotwise.db.repository import SqlAssetRegistry, SqlLedgerRepository

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
def asset(ctx: click.Context) -> None:
    """
    Manage the asset registry.

    Every purchase and sale refers to an asset id registered here.

    \b
    Examples:
        lotwise asset add apple AAPL --name "Apple Inc."
        lotwise asset list
    """
    pass


@asset.command("add")
@click.argument("asset_id")
@click.argument("symbol", callback=validate_ticker)
@click.option("--name", default="", help="Display name (used on 1099-B rows)")
@click.pass_context
@handle_cli_errors
def asset_add(ctx: click.Context, asset_id: str, symbol: str, name: str) -> None:
    """Register an asset (or update its symbol and name)."""
    console: Console = ctx.obj["console"]

    registered = SqlAssetRegistry().add(asset_id, symbol, name)
    console.print(f"[green]Registered {registered.id}[/green] ({registered.symbol})")


@asset.command("list")
@click.pass_context
@handle_cli_errors
def asset_list(ctx: click.Context) -> None:
    """List registered assets with their open quantity."""
    console: Console = ctx.obj["console"]

    assets = SqlAssetRegistry().all()
    if not assets:
        console.print("[yellow]No assets registered[/yellow]")
        console.print("[dim]Run `lotwise asset add ID SYMBOL` to add one[/dim]")
        return

    ledger = TaxLotLedger.from_state(SqlLedgerRepository().load())

    table = Table(title="Assets")
    table.add_column("ID", style="cyan")
    table.add_column("Symbol")
    table.add_column("Name")
    table.add_column("Open Qty", justify="right")
    for a in assets:
        table.add_row(a.id, a.symbol, a.name or MISSING, format_quantity(ledger.open_quantity(a.id)))
    console.print(table)
