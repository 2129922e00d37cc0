"""
Per-workspace context: everything one scheduler needs, built once.

There is no process-wide state. A host keeps one context per open
workspace (see WorkspaceRegistry) and passes it to the scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from leysync.core.cache.service import RepositoryCache
from leysync.core.config.models import LeySyncConfig, RepoConfig
from leysync.core.contribute.service import ContributionEngine, PullRequestClientFactory
from leysync.core.notify import Notifier
from leysync.core.reconcile.rules import SHARED_SUBTREE
from leysync.core.reconcile.service import FileReconciler


def _keep_local_for(config: LeySyncConfig) -> tuple[str, ...]:
    # Pending contributions must survive the reconcile that precedes them
    return (SHARED_SUBTREE,) if config.contribute.enabled else ()


@dataclass
class WorkspaceContext:
    """Engine instances bound to one workspace root."""

    root: Path
    config: LeySyncConfig
    repo: RepoConfig
    cache: RepositoryCache
    reconciler: FileReconciler
    contributor: ContributionEngine
    notifier: Notifier

    @classmethod
    def build(
        cls,
        root: Path,
        notifier: Notifier,
        config: LeySyncConfig,
        *,
        client_factory: PullRequestClientFactory | None = None,
    ) -> WorkspaceContext:
        """
        Build the engine set for a workspace.

        Args:
            root: Workspace root directory
            notifier: User-facing message sink
            config: Configuration snapshot; its repository settings are
                frozen into the context
            client_factory: Optional pull request client factory

        Returns:
            A ready WorkspaceContext
        """
        root = root.resolve()
        repo = config.repo_config(root)
        cache = RepositoryCache(repo)
        reconciler = FileReconciler(
            root,
            repo.local_path,
            notifier=notifier,
            keep_local=_keep_local_for(config),
            update_ignore_file=config.ignore_file.auto_update,
        )
        contributor = ContributionEngine(
            root,
            cache,
            config.contribute,
            notifier,
            client_factory=client_factory,
        )
        return cls(
            root=root,
            config=config,
            repo=repo,
            cache=cache,
            reconciler=reconciler,
            contributor=contributor,
            notifier=notifier,
        )

    def needs_rebuild(self, config: LeySyncConfig) -> bool:
        """True if config points at a different repository or cache path."""
        return config.repo_config(self.root) != self.repo

    def apply(self, config: LeySyncConfig) -> None:
        """
        Take over the settings that can change without a rebuild.

        Repository URL, branch and cache path are not applied here; a change
        to those needs a new context.
        """
        self.config = config
        self.reconciler.keep_local = _keep_local_for(config)
        self.reconciler.update_ignore_file = config.ignore_file.auto_update
        self.contributor.settings = config.contribute
