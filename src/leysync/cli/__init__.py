"""
leysync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from leysync import __version__
from leysync.cli import status, sync
from leysync.core.config.env import load_env_files

app = typer.Typer(
    name="leysync",
    help="Keep agent configuration in sync with a shared template repository",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for leysync commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    leysync - agent configuration sync.

    Mirrors the template repository into a local cache, deploys the files
    of the enabled integrations (Claude, Cursor, Copilot, ...) into the
    workspace and proposes edits to .ai-ley/shared back upstream.

    Common Workflows:
        leysync sync                 # One sync cycle
        leysync sync --force         # Refresh and redeploy everything
        leysync watch                # Keep syncing on a timer
        leysync contribute           # Propose shared edits upstream
        leysync status               # Show cache and configuration
    """
    # Tokens and LEYSYNC_* overrides may live in .env files
    load_env_files()
    setup_logging(debug)
    ctx.obj = {"debug": debug}


app.command(name="sync")(sync.sync)
app.command(name="reconcile")(sync.reconcile)
app.command(name="contribute")(sync.contribute)
app.command(name="watch")(sync.watch)
app.command(name="status")(status.status)


@app.command()
def version() -> None:
    """Show leysync version and exit."""
    console.print(f"leysync version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
