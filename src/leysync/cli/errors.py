"""
Standardized error handling and exit codes for the leysync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for leysync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error (a sync or contribution failed)."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_a_directory_error(path: str) -> None:
    """Print error when the workspace path is not a directory."""
    print_error(
        f"Workspace not found: {path}",
        reason="leysync needs an existing workspace directory to sync into",
        solution="leysync sync --path /path/to/workspace",
    )


def print_invalid_config_error(details: str) -> None:
    """Print error when the merged configuration fails validation."""
    print_error(
        "Invalid leysync configuration",
        reason=details,
        solution="check .leysync.json and ~/.config/leysync/config.json",
    )


def print_cache_missing_error() -> None:
    """Print error when a command needs the repository cache but it is absent."""
    print_error(
        "Repository cache not present",
        reason="The template repository has not been cloned into this workspace yet",
        solution="leysync sync",
    )
