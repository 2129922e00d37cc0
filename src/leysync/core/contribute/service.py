"""
Contribution of shared-subtree edits back to the template repository.

A contribution cycle:
1. diff the workspace's shared subtree against the cache copy
2. copy changed files into the cache
3. create a uniquely named branch, commit, push
4. open a pull request (when a token is available)
5. archive the changed files under the workspace
6. always return the cache to its tracked branch

A file counts as edited only when it differs both from the cache copy and
from what reconciliation last deployed there, so a template update that has
not reached the workspace yet is never proposed back. Files whose content
equals the archived copy were already contributed and are waiting for the
upstream merge; they are not proposed again.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from leysync.core.cache.service import RepositoryCache
from leysync.core.config.models import ContributeConfig
from leysync.core.contribute.models import ContributionResult
from leysync.core.exceptions import ApiError, CacheError, ContributionError
from leysync.core.github.client import PullRequestClient
from leysync.core.notify import Notifier
from leysync.core.reconcile.manifest import DeployManifest
from leysync.core.reconcile.rules import ARCHIVE_DIR, SHARED_SUBTREE, should_skip
from leysync.utils.files import copy_file, files_match, list_files

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "contribution/"
TOKEN_PROMPT = (
    "Enter a GitHub personal access token with repo permissions to open a pull request"
)

PullRequestClientFactory = Callable[[str], PullRequestClient]


def sanitize_project_name(name: str) -> str:
    """
    Make a workspace name safe for a branch name.

    Example:
        >>> sanitize_project_name("My Project_v2")
        'my-project-v2'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]", "-", name).lower()
    return cleaned or "workspace"


def make_branch_name(project_name: str, now: datetime) -> str:
    """
    Build a contribution branch name unique across contributors.

    Format: contribution/<project>-<YYYY-MM-DD>-<epoch milliseconds>
    """
    millis = int(now.timestamp() * 1000)
    return f"{BRANCH_PREFIX}{sanitize_project_name(project_name)}-{now:%Y-%m-%d}-{millis}"


class ContributionEngine:
    """
    Detects local edits under the shared subtree and proposes them upstream.

    Example:
        >>> engine = ContributionEngine(workspace_root, cache, settings, notifier)
        >>> result = await engine.check_and_contribute()
        >>> print(result.summary())
        Contributed 2 file(s) on contribution/my-app-2025-01-01-1735689600000
    """

    def __init__(
        self,
        workspace_root: Path,
        cache: RepositoryCache,
        settings: ContributeConfig,
        notifier: Notifier,
        *,
        client_factory: PullRequestClientFactory | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the engine.

        Args:
            workspace_root: Workspace whose shared subtree is watched.
            cache: Repository cache used for branching and pushing.
            settings: Contribution settings (enabled flag, upstream repo, token env).
            notifier: Receives progress, warnings and the secret prompt.
            client_factory: Builds a PullRequestClient from a token; defaults
                to one targeting settings.upstream_repo.
            clock: Source of "now" for branch names.
        """
        self.workspace_root = workspace_root
        self.cache = cache
        self.settings = settings
        self.notifier = notifier
        self._client_factory = client_factory or self._default_client
        self._clock = clock

    @property
    def workspace_shared(self) -> Path:
        return self.workspace_root / SHARED_SUBTREE

    @property
    def cache_shared(self) -> Path:
        return self.cache.path / SHARED_SUBTREE

    @property
    def archive_root(self) -> Path:
        return self.workspace_root / ARCHIVE_DIR

    @property
    def project_name(self) -> str:
        return self.workspace_root.name

    def _default_client(self, token: str) -> PullRequestClient:
        return PullRequestClient(
            self.settings.upstream_repo,
            token=token,
            api_url=self.settings.api_url,
        )

    def compute_changes(self) -> list[str]:
        """
        Compute the ChangeSet of the shared subtree.

        New files and local edits only; deletions are not detected. A file
        that still holds the content last deployed by reconciliation is not
        an edit, even when the cache has moved on since.

        Returns:
            Sorted POSIX paths relative to the shared subtree.
        """
        changed: list[str] = []
        manifest = DeployManifest.load(self.workspace_root)

        for relative in list_files(self.workspace_shared):
            workspace_relative = f"{SHARED_SUBTREE}/{relative}"
            if should_skip(workspace_relative):
                continue

            workspace_file = self.workspace_shared / relative
            if files_match(workspace_file, self.cache_shared / relative):
                continue
            if not manifest.is_locally_edited(workspace_relative, workspace_file):
                logger.debug("Unchanged since last deploy: %s", relative)
                continue
            if files_match(workspace_file, self.archive_root / relative):
                logger.debug("Already contributed, awaiting upstream merge: %s", relative)
                continue
            changed.append(relative)

        return changed

    def _copy_all(self, changed_files: list[str], destination: Path) -> None:
        for relative in changed_files:
            copy_file(self.workspace_shared / relative, destination / relative)
            logger.debug("Copied %s -> %s", relative, destination)

    def _commit_message(self, changed_files: list[str]) -> str:
        files = "\n".join(f"- {f}" for f in changed_files)
        return (
            f"Community contribution: Updated {len(changed_files)} file(s) in shared\n\n"
            f"From workspace: {self.project_name}\n"
            f"Files:\n{files}"
        )

    def _proposal_body(self, changed_files: list[str]) -> str:
        files = "\n".join(f"- {f}" for f in changed_files)
        return (
            "This is an automated pull request opened by leysync.\n\n"
            f"**Changed files:**\n{files}\n\n"
            f"Contributed from workspace: {self.project_name}"
        )

    async def _get_token(self) -> str | None:
        """Token from the environment first, then the interactive prompt."""
        if token := os.environ.get(self.settings.token_env):
            return token
        token = await asyncio.to_thread(self.notifier.prompt_secret, TOKEN_PROMPT)
        return token or None

    async def _open_proposal(
        self, branch: str, changed_files: list[str], result: ContributionResult
    ) -> None:
        token = await self._get_token()
        if not token:
            result.proposal_error = "No access token available"
            self.notifier.warning(
                "No GitHub token available, cannot create pull request. "
                f"Branch {branch} was pushed but no pull request was opened."
            )
            return

        client = self._client_factory(token)
        try:
            pull_request = await client.create_pull_request(
                title="Community contribution: Updated shared files",
                body=self._proposal_body(changed_files),
                head=branch,
                base=self.cache.branch,
            )
        except ApiError as e:
            # The branch is already upstream, so the cycle carries on
            logger.error("Failed to create pull request: %s", e)
            result.proposal_error = str(e)
            self.notifier.error(f"Failed to create pull request - {e}")
            return

        result.proposal_url = pull_request.url
        self.notifier.info(f"Pull request created successfully! View at: {pull_request.url}")

    async def _restore_cache(self, branch: str | None) -> None:
        try:
            await self.cache.checkout_tracked_and_sync(discard_branch=branch)
        except CacheError as e:
            logger.error("Failed to restore cache to %s: %s", self.cache.branch, e)

    async def check_and_contribute(self) -> ContributionResult:
        """
        Run one contribution cycle.

        Never raises for cycle failures: they are reported through the
        notifier once and described in the returned result. The cache is
        always returned to its tracked branch once the cycle has started.

        Returns:
            ContributionResult describing how far the cycle got.
        """
        started_at = datetime.now()

        if not self.settings.enabled:
            logger.debug("Contribution is disabled")
            return ContributionResult(
                success=True,
                message="Contribution is disabled",
                started_at=started_at,
                completed_at=datetime.now(),
            )

        if not self.cache.is_present():
            logger.info("Repository cache not present, skipping contribution check")
            return ContributionResult(
                success=False,
                failed_step="diff",
                message="Repository cache not present",
                started_at=started_at,
                completed_at=datetime.now(),
            )

        result = ContributionResult(success=False, started_at=started_at)
        step = "diff"

        try:
            logger.debug("Checking for changes in %s", self.workspace_shared)
            changed_files = await asyncio.to_thread(self.compute_changes)

            if not changed_files:
                logger.debug("No changes detected in %s", SHARED_SUBTREE)
                result.success = True
                result.message = "No changes to contribute"
                result.completed_at = datetime.now()
                return result

            result.changed_files = changed_files
            logger.info("Found %d changed file(s): %s", len(changed_files), changed_files)
            self.notifier.info(
                f"Detected {len(changed_files)} changed file(s) in {SHARED_SUBTREE}. "
                "Contributing back..."
            )

            try:
                step = "stage"
                await asyncio.to_thread(self._copy_all, changed_files, self.cache_shared)

                step = "branch"
                branch = make_branch_name(self.project_name, self._clock())
                await self.cache.create_branch(branch)
                result.branch = branch

                step = "commit"
                await self.cache.stage_and_commit(
                    SHARED_SUBTREE, self._commit_message(changed_files)
                )

                step = "push"
                await self.cache.push(branch)
                result.pushed = True

                step = "propose"
                await self._open_proposal(branch, changed_files, result)

                step = "archive"
                await asyncio.to_thread(self._copy_all, changed_files, self.archive_root)
                result.archived = True
            finally:
                await self._restore_cache(result.branch)

        except (CacheError, OSError) as e:
            error = ContributionError(step, str(e))
            logger.error("Contribution failed at %s: %s", step, e)
            self.notifier.error(f"Contribution failed - {error}")
            result.failed_step = step
            result.message = str(error)
            result.completed_at = datetime.now()
            return result

        result.success = True
        result.message = f"Contribution complete! {len(changed_files)} file(s) contributed."
        result.completed_at = datetime.now()
        self.notifier.info(result.message)
        return result
