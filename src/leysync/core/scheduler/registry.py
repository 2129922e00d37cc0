"""
Lookup of active schedulers keyed by workspace root.

The registry is an ordinary object owned by the host (the CLI's watch
command, an editor integration). It is the only place that maps a
workspace to its scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from leysync.core.config.loader import load_config
from leysync.core.config.models import LeySyncConfig
from leysync.core.contribute.service import PullRequestClientFactory
from leysync.core.notify import Notifier
from leysync.core.scheduler.context import WorkspaceContext
from leysync.core.scheduler.service import SyncScheduler

logger = logging.getLogger(__name__)

REBUILD_SECTIONS = frozenset({"repository", "cache"})


class WorkspaceRegistry:
    """
    Activates and deactivates one SyncScheduler per workspace.

    Example:
        >>> registry = WorkspaceRegistry(lambda root: ConsoleNotifier())
        >>> scheduler = await registry.activate(Path("~/code/app").expanduser())
        >>> await registry.deactivate_all()
    """

    def __init__(
        self,
        notifier_factory: Callable[[Path], Notifier],
        *,
        config_loader: Callable[[Path], LeySyncConfig] = load_config,
        client_factory: PullRequestClientFactory | None = None,
    ) -> None:
        self._notifier_factory = notifier_factory
        self._config_loader = config_loader
        self._client_factory = client_factory
        self._schedulers: dict[Path, SyncScheduler] = {}

    @staticmethod
    def _key(root: Path) -> Path:
        return root.expanduser().resolve()

    def __contains__(self, root: object) -> bool:
        return isinstance(root, Path) and self._key(root) in self._schedulers

    def __len__(self) -> int:
        return len(self._schedulers)

    @property
    def roots(self) -> list[Path]:
        return list(self._schedulers)

    def get(self, root: Path) -> SyncScheduler | None:
        """Return the scheduler for a workspace, if active."""
        return self._schedulers.get(self._key(root))

    def _build(self, root: Path) -> SyncScheduler:
        config = self._config_loader(root)
        context = WorkspaceContext.build(
            root,
            self._notifier_factory(root),
            config,
            client_factory=self._client_factory,
        )
        return SyncScheduler(context, config_loader=lambda: self._config_loader(root))

    async def activate(self, root: Path, *, force_initial_sync: bool = False) -> SyncScheduler:
        """
        Start syncing a workspace (no-op if it is already active).

        Returns:
            The workspace's scheduler.
        """
        key = self._key(root)
        if key in self._schedulers:
            return self._schedulers[key]

        scheduler = self._build(key)
        self._schedulers[key] = scheduler
        logger.info("Activated workspace %s", key)
        await scheduler.start(force_initial_sync)
        return scheduler

    async def deactivate(self, root: Path) -> None:
        """Stop syncing a workspace; waits for a running cycle to finish."""
        scheduler = self._schedulers.pop(self._key(root), None)
        if scheduler is None:
            return
        scheduler.stop()
        await scheduler.wait_idle()
        logger.info("Deactivated workspace %s", scheduler.context.root)

    async def deactivate_all(self) -> None:
        for root in list(self._schedulers):
            await self.deactivate(root)

    async def handle_config_change(self, root: Path, sections: Iterable[str]) -> None:
        """
        Route a configuration change to the workspace's scheduler.

        Repository or cache changes rebuild the context from scratch.
        """
        changed = set(sections)
        scheduler = self.get(root)
        if scheduler is None:
            return

        if changed & REBUILD_SECTIONS:
            logger.info("Repository settings changed, rebuilding %s", scheduler.context.root)
            await self.deactivate(root)
            await self.activate(root)
            return

        await scheduler.handle_config_change(changed)
