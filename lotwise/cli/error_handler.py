"""Shared CLI error handling decorator.

Catches ledger and input errors in one place so commands only handle the
happy path.

Usage:
    @click.command()
    @click.pass_context
    @handle_cli_errors
    def my_command(ctx, ...):
        ...
"""

import functools
import logging

import click
from rich.console import Console

from lotwise.core.exceptions import (
    AssetNotFoundError,
    ConfigurationError,
    InsufficientLotsError,
    LotwiseError,
)

logger = logging.getLogger(__name__)


def handle_cli_errors(f):
    """Decorator that catches Lotwise exceptions with Rich-formatted output.

    Every handled error prints a red message and exits with status 1.

    Must be applied AFTER @click.pass_context so the Click context (which
    provides the console via ctx.obj["console"]) is available.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context(silent=True)
        console = ctx.obj["console"] if ctx and ctx.obj and "console" in ctx.obj else Console()

        try:
            return f(*args, **kwargs)
        except SystemExit:
            raise  # Don't intercept explicit exits
        except click.exceptions.Exit:
            raise  # Don't intercept Click exits
        except click.ClickException:
            raise
        except AssetNotFoundError as e:
            console.print(f"[red]Error:[/red] {e}")
            console.print("[dim]Register it first: lotwise asset add ID SYMBOL[/dim]")
            raise SystemExit(1)
        except InsufficientLotsError as e:
            console.print(f"[red]Insufficient lots:[/red] {e}")
            console.print(f"[dim]Run `lotwise lots {e.asset_id}` to see open lots[/dim]")
            raise SystemExit(1)
        except ConfigurationError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            raise SystemExit(1)
        except LotwiseError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        except Exception as e:
            logger.exception("Unexpected error in %s command", f.__name__)
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise SystemExit(1)

    return wrapper
