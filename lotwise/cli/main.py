"""
Lotwise CLI - tax lot accounting.

Entry point for the command-line interface. Provides commands for:
- Asset registry
- Purchases and sales with FIFO/LIFO/specific-ID lot matching
- Lot inspection
- Unrealized gains and tax-loss harvesting
- Tax-year reports and 1099-B listings

Usage:
    lotwise --help
    lotwise asset add apple AAPL --name "Apple Inc."
    lotwise buy apple -q 10 -p 150 -d 2024-01-15
    lotwise sell apple -q 4 -p 180 --method LIFO
    lotwise lots apple --all
    lotwise unrealized --price AAPL=190
    lotwise report 2024 --json
"""

import logging
from collections import OrderedDict

import click
from rich.console import Console

from lotwise import __version__
from lotwise.cli.commands import assets, lots, tax
from lotwise.config import config


class OrderedGroup(click.Group):
    """Custom group that displays commands in organized categories."""

    COMMAND_GROUPS: OrderedDict[str, list[str]] = OrderedDict([
        ("Setup", ["asset"]),
        ("Transactions", ["buy", "sell", "lots"]),
        ("Positions", ["unrealized", "harvest"]),
        ("Tax", ["report", "form-1099b"]),
    ])

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write commands in organized groups."""
        for group_name, cmd_names in self.COMMAND_GROUPS.items():
            commands = []
            for cmd_name in cmd_names:
                cmd = self.get_command(ctx, cmd_name)
                if cmd:
                    help_text = cmd.get_short_help_str(limit=formatter.width)
                    commands.append((cmd_name, help_text))

            if commands:
                with formatter.section(group_name):
                    formatter.write_dl(commands)

# Global console for rich output
console = Console()


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="lotwise")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    Lotwise - tax lot accounting from the command line.

    Tracks every purchase as a tax lot, matches sales to lots, and
    reports realized gains by tax year.

    \b
    Examples:
        lotwise asset add apple AAPL        # Register an asset
        lotwise buy apple -q 10 -p 150      # Record a purchase
        lotwise sell apple -q 5 -p 175      # Record a sale (FIFO)
        lotwise lots apple                  # Show open lots
        lotwise unrealized --price AAPL=190 # Mark to market
        lotwise report 2024                 # Tax-year summary
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["console"] = console


# Register commands
cli.add_command(assets.asset)
cli.add_command(lots.buy)
cli.add_command(lots.sell)
cli.add_command(lots.lots)
cli.add_command(lots.unrealized)
cli.add_command(lots.harvest)
cli.add_command(tax.report)
cli.add_command(tax.form_1099b)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
