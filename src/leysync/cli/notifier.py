"""
Console implementation of the engine's Notifier protocol.
"""

from __future__ import annotations

import sys

import typer
from rich.console import Console

from leysync.core.notify import LoggingNotifier, Notifier


class ConsoleNotifier:
    """
    Prints engine messages with Rich and prompts for secrets with Typer.

    When stdin is not a terminal (or interactive=False) the secret prompt
    returns None instead of blocking.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        prefix: str = "leysync",
        interactive: bool | None = None,
    ) -> None:
        self.console = console or Console()
        self.prefix = prefix
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

    def info(self, message: str) -> None:
        self.console.print(f"[blue]{self.prefix}:[/blue] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {self.prefix}:[/yellow] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗ {self.prefix}:[/red] {message}")

    def prompt_secret(self, prompt: str) -> str | None:
        if not self.interactive:
            return None
        try:
            value: str = typer.prompt(prompt, hide_input=True, default="", show_default=False)
        except (typer.Abort, EOFError):
            return None
        return value.strip() or None


def notifier_for(console: Console) -> Notifier:
    """
    Pick the notifier for a long-running command.

    A terminal gets Rich output and the token prompt. Without one (output
    redirected, run by a service manager) messages go to the log at their
    own level and the prompt is skipped.
    """
    if console.is_terminal:
        return ConsoleNotifier(console)
    return LoggingNotifier()
