"""
leysync CLI - status command.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from leysync.cli.sync import PATH_OPTION, build_context
from leysync.core.scheduler import WorkspaceContext

console = Console()


async def _cache_details(context: WorkspaceContext) -> tuple[str | None, str | None, str]:
    cache = context.cache
    head = await cache.head_commit()
    branch = await cache.current_branch()
    updated = await cache.last_update_time()
    updated_text = updated.strftime("%Y-%m-%d %H:%M:%S") if updated else "[dim]Never[/dim]"
    return head, branch, updated_text


def status(
    path: Path | None = PATH_OPTION,
) -> None:
    """
    Show cache and configuration status for a workspace.

    Examples:
        leysync status
    """
    context = build_context(path)
    config = context.config
    cache = context.cache

    table = Table(title="leysync status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Workspace", str(context.root))
    table.add_row("Repository", f"{context.repo.url} ({context.repo.branch})")
    table.add_row("Cache", str(cache.path))

    if cache.is_present():
        head, branch, updated_text = asyncio.run(_cache_details(context))
        table.add_row("Cache present", "[green]yes[/green]")
        table.add_row("Checked out", branch or "[dim]unknown[/dim]")
        table.add_row("Head commit", head[:8] if head else "[dim]unknown[/dim]")
        table.add_row("Last update", updated_text)
    else:
        table.add_row("Cache present", "[red]no[/red]")

    enabled = config.agentic.enabled_names()
    table.add_row("Integrations", ", ".join(enabled) if enabled else "[dim]none[/dim]")

    if config.update.enabled and config.update.interval > 0:
        table.add_row("Scheduled updates", f"every {config.update.interval}s")
    else:
        table.add_row("Scheduled updates", "[dim]disabled[/dim]")

    contribute_text = (
        f"enabled → {config.contribute.upstream_repo}"
        if config.contribute.enabled
        else "[dim]disabled[/dim]"
    )
    table.add_row("Contribution", contribute_text)

    console.print(table)

    if not cache.is_present():
        console.print("\n[dim]→ Run [bold]leysync sync[/bold] to clone the template repository[/dim]")
