"""
leysync CLI - sync, reconcile, contribute and watch commands.

Thin wrappers around the engine: each command builds a WorkspaceContext for
the target workspace and runs one operation with asyncio.run().
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from leysync.cli.errors import (
    ExitCode,
    print_cache_missing_error,
    print_invalid_config_error,
    print_not_a_directory_error,
)
from leysync.cli.notifier import ConsoleNotifier, notifier_for
from leysync.core.config import load_config
from leysync.core.scheduler import CycleReport, SyncScheduler, WorkspaceContext, WorkspaceRegistry

console = Console()

PATH_OPTION = typer.Option(
    None,
    "--path",
    "-p",
    help="Workspace root (defaults to the current directory)",
)


def _resolve_workspace(path: Path | None) -> Path:
    root = (path or Path.cwd()).expanduser()
    if not root.is_dir():
        print_not_a_directory_error(str(root))
        raise typer.Exit(ExitCode.USER_ERROR)
    return root.resolve()


def build_context(path: Path | None) -> WorkspaceContext:
    """Load configuration and build the engine set for a workspace."""
    root = _resolve_workspace(path)
    try:
        config = load_config(root)
    except ValidationError as e:
        print_invalid_config_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    return WorkspaceContext.build(root, ConsoleNotifier(console), config)


def _print_report(report: CycleReport) -> None:
    if report.error:
        console.print(f"[red]Sync failed:[/red] {report.error}")
        return

    if report.reconcile is not None:
        console.print(f"[green]✓[/green] {report.reconcile.summary()}")
        if report.reconcile.missing_sources:
            missing = ", ".join(report.reconcile.missing_sources)
            console.print(f"[dim]Not in template repository: {missing}[/dim]")
        if report.reconcile.kept_local:
            console.print(
                f"[dim]Kept {len(report.reconcile.kept_local)} locally edited file(s)[/dim]"
            )

    if report.contribution is not None and report.contribution.changed_files:
        console.print(report.contribution.summary())


def sync(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Refresh the cache and reconcile even if the remote did not move",
    ),
    path: Path | None = PATH_OPTION,
) -> None:
    """
    Run one sync cycle for a workspace.

    Clones the template repository on first use, refreshes it when the
    remote moved, deploys the enabled integrations and proposes local edits
    to the shared subtree upstream.

    Examples:
        leysync sync                 # Regular cycle
        leysync sync --force         # Refresh and redeploy unconditionally
        leysync sync -p ~/code/app   # Sync another workspace
    """
    context = build_context(path)
    scheduler = SyncScheduler(context)

    async def _run() -> CycleReport:
        if not force:
            return await scheduler.run_cycle()
        report = await scheduler.force_update()
        if report.success:
            report.contribution = await context.contributor.check_and_contribute()
        return report

    report = asyncio.run(_run())
    _print_report(report)

    if not report.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    if report.contribution is not None and not report.contribution.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def reconcile(path: Path | None = PATH_OPTION) -> None:
    """
    Deploy the enabled integrations from the cache without fetching.

    Examples:
        leysync reconcile
    """
    context = build_context(path)
    if not context.cache.is_present():
        print_cache_missing_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    scheduler = SyncScheduler(context)
    result = asyncio.run(scheduler.reconcile_now())
    if result is None:
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if result.missing_sources:
        console.print(f"[dim]Not in template repository: {', '.join(result.missing_sources)}[/dim]")
    if result.failures:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def contribute(path: Path | None = PATH_OPTION) -> None:
    """
    Propose local edits under .ai-ley/shared upstream.

    Examples:
        leysync contribute
        GITHUB_TOKEN=ghp_... leysync contribute
    """
    context = build_context(path)
    if not context.cache.is_present():
        print_cache_missing_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    result = asyncio.run(context.contributor.check_and_contribute())
    if not result.changed_files and result.success:
        console.print(f"[blue]{result.message}[/blue]")
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def watch(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Make the first cycle a forced one",
    ),
    path: Path | None = PATH_OPTION,
) -> None:
    """
    Keep a workspace in sync until interrupted.

    Runs one cycle immediately, then repeats every update.interval seconds.
    Without a terminal, sync messages go to the log instead of the console
    and no token prompt is shown.

    Examples:
        leysync watch
        LEYSYNC_UPDATE_INTERVAL=600 leysync watch
    """
    root = _resolve_workspace(path)

    async def _watch() -> None:
        notifier = notifier_for(console)
        registry = WorkspaceRegistry(lambda _root: notifier)
        try:
            scheduler = await registry.activate(root, force_initial_sync=force)
            if not scheduler.is_running:
                console.print("[yellow]Scheduled updates are disabled for this workspace[/yellow]")
                return
            console.print(f"[green]✓[/green] Watching {root} [dim](Ctrl+C to stop)[/dim]")
            await asyncio.Event().wait()
        finally:
            await registry.deactivate_all()

    try:
        asyncio.run(_watch())
    except ValidationError as e:
        print_invalid_config_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")
        raise typer.Exit(ExitCode.SIGINT)
