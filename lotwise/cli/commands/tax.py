"""Tax reporting commands: yearly realized gains and 1099-B rows."""

import json
import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lotwise.cli.context import open_engine
from lotwise.cli.error_handler import handle_cli_errors
from lotwise.cli.formatting import (
    BORDER_PRIMARY,
    format_gain,
    format_money,
    get_term_label,
)

logger = logging.getLogger(__name__)


@click.command("report")
@click.argument("year", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def report(ctx: click.Context, year: int, as_json: bool) -> None:
    """Realized gains and losses for a tax year."""
    console: Console = ctx.obj["console"]

    tax_report = open_engine().generate_tax_report(year)

    if as_json:
        click.echo(json.dumps(tax_report.to_dict(), indent=2))
        return

    if not tax_report.realized_gains:
        console.print(f"[yellow]No sales recorded in {year}[/yellow]")
        return

    console.print(Panel.fit(f"[bold]Tax Report {year}[/bold]", border_style=BORDER_PRIMARY))
    console.print(f"[cyan]Sales:[/cyan] {len(tax_report.realized_gains)}")
    console.print(f"[cyan]Short-term:[/cyan] {format_gain(tax_report.short_term_gains)} gains, "
                  f"{format_gain(-tax_report.short_term_losses)} losses")
    console.print(f"[cyan]Long-term:[/cyan] {format_gain(tax_report.long_term_gains)} gains, "
                  f"{format_gain(-tax_report.long_term_losses)} losses")
    console.print(f"[cyan]Net Realized:[/cyan] {format_gain(tax_report.net_realized_gains)}")
    console.print()

    table = Table(title="By Asset")
    table.add_column("Symbol", style="cyan")
    table.add_column("Gains", justify="right")
    table.add_column("Losses", justify="right")
    table.add_column("Net", justify="right")
    for symbol, summary in sorted(tax_report.by_asset.items()):
        table.add_row(
            symbol,
            format_money(summary.realized_gains),
            format_money(summary.realized_losses),
            format_gain(summary.net_gains),
        )
    console.print(table)


@click.command("form-1099b")
@click.argument("year", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def form_1099b(ctx: click.Context, year: int, as_json: bool) -> None:
    """1099-B style listing of a year's sales."""
    console: Console = ctx.obj["console"]

    rows = open_engine().generate_1099b(year)

    if as_json:
        click.echo(json.dumps([row.to_dict() for row in rows], indent=2))
        return

    if not rows:
        console.print(f"[yellow]No sales recorded in {year}[/yellow]")
        return

    table = Table(title=f"Form 1099-B ({year})")
    table.add_column("Description")
    table.add_column("Acquired")
    table.add_column("Sold")
    table.add_column("Proceeds", justify="right")
    table.add_column("Basis", justify="right")
    table.add_column("Gain/Loss", justify="right")
    table.add_column("Term")
    for row in rows:
        label, color = get_term_label(not row.short_term)
        table.add_row(
            row.description,
            row.date_acquired.date().isoformat(),
            row.date_sold.date().isoformat(),
            format_money(row.proceeds),
            format_money(row.cost_basis),
            format_gain(row.gain_loss),
            f"[{color}]{label}[/{color}]",
        )
    console.print(table)
