"""Transaction and lot commands: buy, sell, lots, unrealized, harvest."""

import logging

import click
from rich.console import Console
from rich.table import Table

from lotwise.cli.context import open_engine
from lotwise.cli.error_handler import handle_cli_errors
from lotwise.cli.formatting import (
    MISSING,
    format_gain,
    format_money,
    format_percent,
    format_quantity,
    get_term_label,
)
from lotwise.cli.validators import (
    validate_date,
    validate_positive_decimal,
    validate_price_quotes,
)
from lotwise.core.lots.models import CostBasisMethod

logger = logging.getLogger(__name__)

METHOD_CHOICES = [m.value for m in CostBasisMethod]


@click.command("buy")
@click.argument("asset_id")
@click.option("--quantity", "-q", required=True, callback=validate_positive_decimal("Quantity"), help="Units bought")
@click.option("--price", "-p", required=True, callback=validate_positive_decimal("Price"), help="Price per unit")
@click.option("--date", "-d", default=None, callback=validate_date, help="Purchase date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def buy(ctx: click.Context, asset_id: str, quantity, price, date) -> None:
    """Record a purchase as a new tax lot."""
    console: Console = ctx.obj["console"]

    engine = open_engine()
    lot = engine.record_purchase(asset_id, quantity, price, date)

    console.print(f"[green]Recorded purchase of {asset_id}[/green]")
    console.print(f"  Lot: {lot.id}")
    console.print(f"  Quantity: {format_quantity(lot.quantity)}")
    console.print(f"  Price: {format_money(lot.purchase_price)}")
    console.print(f"  Cost Basis: {format_money(lot.cost_basis)}")


@click.command("sell")
@click.argument("asset_id")
@click.option("--quantity", "-q", required=True, callback=validate_positive_decimal("Quantity"), help="Units sold")
@click.option("--price", "-p", required=True, callback=validate_positive_decimal("Price"), help="Sale price per unit")
@click.option("--date", "-d", default=None, callback=validate_date, help="Sale date (YYYY-MM-DD)")
@click.option(
    "--method",
    "-m",
    type=click.Choice(METHOD_CHOICES, case_sensitive=False),
    default=None,
    help="Lot matching method (default from LOTWISE_DEFAULT_METHOD)",
)
@click.option("--lot", "lot_ids", multiple=True, help="Lot id to consume (repeatable, implies SPECIFIC_ID)")
@click.pass_context
@handle_cli_errors
def sell(ctx: click.Context, asset_id: str, quantity, price, date, method, lot_ids) -> None:
    """Record a sale and show the realized gain."""
    console: Console = ctx.obj["console"]

    if lot_ids and method is None:
        method = CostBasisMethod.SPECIFIC_ID.value

    engine = open_engine()
    record = engine.record_sale(
        asset_id,
        None,
        quantity,
        price,
        date,
        method=method,
        specific_lot_ids=list(lot_ids) or None,
    )

    label, color = get_term_label(record.is_long_term)
    console.print(f"[green]Recorded sale of {record.symbol}[/green] ({record.method.value})")
    console.print(f"  Quantity: {format_quantity(record.quantity)}")
    console.print(f"  Proceeds: {format_money(record.proceeds)}")
    console.print(f"  Cost Basis: {format_money(record.cost_basis)}")
    console.print(f"  Realized Gain: {format_gain(record.realized_gain)} ({format_percent(record.realized_gain_percent)})")
    console.print(f"  Holding Period: {record.holding_period:.0f} days [{color}]{label}-term[/{color}]")
    console.print(f"  Lots: {', '.join(record.tax_lot_ids)}")


@click.command("lots")
@click.argument("asset_id")
@click.option("--all", "include_closed", is_flag=True, help="Include closed lots")
@click.pass_context
@handle_cli_errors
def lots(ctx: click.Context, asset_id: str, include_closed: bool) -> None:
    """Show an asset's tax lots."""
    console: Console = ctx.obj["console"]

    engine = open_engine()
    rows = engine.lots(asset_id, include_closed=include_closed)
    if not rows:
        console.print(f"[yellow]No {'' if include_closed else 'open '}lots for {asset_id}[/yellow]")
        return

    now = engine.ledger.now()
    table = Table(title=f"Tax Lots: {asset_id}")
    table.add_column("Lot", style="cyan", no_wrap=True)
    table.add_column("Purchased")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Basis", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Term")
    if include_closed:
        table.add_column("Sold")
        table.add_column("Gain", justify="right")

    for lot in rows:
        label, color = get_term_label(lot.is_long_term(now))
        cells = [
            lot.id,
            lot.purchase_date.date().isoformat(),
            format_quantity(lot.quantity),
            format_money(lot.purchase_price),
            format_money(lot.cost_basis),
            str(lot.days_held(now)),
            f"[{color}]{label}[/{color}]",
        ]
        if include_closed:
            cells.append(lot.sale_date.date().isoformat() if lot.sale_date else MISSING)
            cells.append(format_gain(lot.realized_gain))
        table.add_row(*cells)

    console.print(table)
    console.print(f"[dim]Open quantity: {format_quantity(engine.holding_quantity(asset_id))}[/dim]")


@click.command("unrealized")
@click.option("--price", "prices", multiple=True, callback=validate_price_quotes, help="Current price as SYMBOL=PRICE (repeatable)")
@click.pass_context
@handle_cli_errors
def unrealized(ctx: click.Context, prices) -> None:
    """Show unrealized gains for assets with a quoted price."""
    console: Console = ctx.obj["console"]

    snapshots = open_engine(prices).calculate_unrealized_gains()
    if not snapshots:
        console.print("[yellow]No priced open positions[/yellow]")
        console.print("[dim]Pass current prices with --price SYMBOL=PRICE[/dim]")
        return

    table = Table(title="Unrealized Gains")
    table.add_column("Symbol", style="cyan")
    table.add_column("Qty", justify="right")
    table.add_column("Basis", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Gain", justify="right")
    table.add_column("Gain %", justify="right")
    table.add_column("Term")
    for s in snapshots:
        label, color = get_term_label(s.is_long_term)
        table.add_row(
            s.symbol,
            format_quantity(s.quantity),
            format_money(s.cost_basis),
            format_money(s.current_value),
            format_gain(s.unrealized_gain),
            format_percent(s.unrealized_gain_percent),
            f"[{color}]{label}[/{color}]",
        )
    console.print(table)


@click.command("harvest")
@click.option("--price", "prices", multiple=True, callback=validate_price_quotes, help="Current price as SYMBOL=PRICE (repeatable)")
@click.pass_context
@handle_cli_errors
def harvest(ctx: click.Context, prices) -> None:
    """Suggest short-term losses to harvest."""
    console: Console = ctx.obj["console"]

    suggestions = open_engine(prices).suggest_tax_loss_harvesting()
    if not suggestions:
        console.print("[green]No short-term losses to harvest[/green]")
        return

    table = Table(title="Tax-Loss Harvesting")
    table.add_column("Symbol", style="cyan")
    table.add_column("Loss", justify="right")
    table.add_column("Loss %", justify="right")
    table.add_column("Suggestion")
    for rec in suggestions:
        table.add_row(
            rec.symbol,
            format_gain(-rec.current_loss),
            format_percent(-rec.current_loss_percent),
            rec.suggested_action,
        )
    console.print(table)
