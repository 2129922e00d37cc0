"""
Local mirror of the remote template repository.

The cache is a disposable, shallow, single-branch clone. Refreshing it is a
reconcile-to-remote-truth operation: whenever the remote tip moves, the local
branch is hard-reset onto it and anything edited directly in the cache is
discarded. The only time the cache carries unpushed work is during a
contribution cycle, which always ends with checkout_tracked_and_sync().

The implementation runs the git executable as an asyncio subprocess:
- `git clone --depth 1 --single-branch` to create the mirror
- `git fetch` + `git rev-parse` to compare local and remote tips
- `git reset --hard` to move onto the remote tip
- `git checkout -b` / `add` / `commit` / `push` for contribution branches
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from leysync.core.cache.models import RefreshOutcome
from leysync.core.config.models import RepoConfig
from leysync.core.exceptions import CacheError

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 120.0


class RepositoryCache:
    """
    Owns one local mirror of the template repository.

    Example:
        >>> cache = RepositoryCache(RepoConfig(url=url, branch="main", local_path=path))
        >>> outcome = await cache.ensure_ready()
        >>> print(outcome.value)
        updated
    """

    REMOTE = "origin"

    def __init__(self, config: RepoConfig, *, timeout: float = DEFAULT_GIT_TIMEOUT) -> None:
        """
        Initialize the cache.

        Args:
            config: Repository URL, tracked branch and local path.
            timeout: Seconds before a single git command is abandoned.
        """
        self.config = config
        self.timeout = timeout

    @property
    def path(self) -> Path:
        """Local path of the mirror."""
        return self.config.local_path

    @property
    def branch(self) -> str:
        """Tracked branch name."""
        return self.config.branch

    @property
    def remote_ref(self) -> str:
        """Remote-tracking ref of the tracked branch (e.g. origin/main)."""
        return f"{self.REMOTE}/{self.config.branch}"

    async def _run_git(
        self,
        args: list[str],
        *,
        step: str,
        cwd: Path | None = None,
    ) -> str:
        """
        Run a git command and return its stdout.

        Args:
            args: Git command arguments (without "git" prefix).
            step: Name of the operation, reported on failure.
            cwd: Working directory (defaults to the cache path).

        Returns:
            Command stdout as string (stripped).

        Raises:
            CacheError: If the command fails, times out or git is missing.
        """
        cmd = ["git", *args]
        workdir = cwd or self.path

        logger.debug("Running git command in %s: %s", workdir, " ".join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=workdir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CacheError(step, "git not found in PATH", command=cmd) from e
        except OSError as e:
            raise CacheError(step, f"Could not start git: {e}", command=cmd) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise CacheError(
                step, f"Git command timed out: {' '.join(cmd)}", command=cmd
            ) from e

        stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
        stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            raise CacheError(
                step,
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
            )

        return stdout

    def is_present(self) -> bool:
        """Return True iff the mirror exists (it has a .git directory)."""
        return (self.path / ".git").is_dir()

    async def clone(self) -> None:
        """
        Shallow, single-branch clone of the tracked branch.

        Must not be called on a cache that is already present.

        Raises:
            CacheError: On network, authentication or filesystem failure.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError("clone", f"Cannot create {self.path.parent}: {e}") from e

        logger.info("Cloning %s (%s) into %s", self.config.url, self.branch, self.path)
        await self._run_git(
            [
                "clone",
                "--branch",
                self.branch,
                "--depth",
                "1",
                "--single-branch",
                self.config.url,
                str(self.path),
            ],
            step="clone",
            cwd=self.path.parent,
        )
        logger.info("Cloned template repository into %s", self.path)

    async def _fetch(self, step: str) -> None:
        await self._run_git(["fetch", self.REMOTE, self.branch], step=step)

    async def _tips(self, step: str) -> tuple[str, str]:
        local = await self._run_git(["rev-parse", "HEAD"], step=step)
        remote = await self._run_git(["rev-parse", self.remote_ref], step=step)
        return local, remote

    async def refresh(self) -> RefreshOutcome:
        """
        Fetch the tracked branch and hard-reset onto it if it moved.

        Any edit made directly in the cache is discarded.

        Returns:
            RefreshOutcome.UPDATED if the local tip changed, UNCHANGED otherwise.

        Raises:
            CacheError: If fetch, rev-parse or reset fails.
        """
        await self._fetch("fetch")
        local, remote = await self._tips("fetch")

        if local == remote:
            logger.debug("Cache already at %s (%s)", self.remote_ref, remote[:8])
            return RefreshOutcome.UNCHANGED

        await self._run_git(["reset", "--hard", self.remote_ref], step="reset")
        logger.info("Cache updated %s -> %s", local[:8], remote[:8])
        return RefreshOutcome.UPDATED

    async def has_remote_changes(self) -> bool:
        """
        Check whether the remote tip differs from the local one, without resetting.

        Returns:
            True if the remote moved, or if the cache is absent (clone needed).

        Raises:
            CacheError: If fetch or rev-parse fails.
        """
        if not self.is_present():
            return True

        await self._fetch("fetch")
        local, remote = await self._tips("fetch")
        return local != remote

    async def ensure_ready(self) -> RefreshOutcome:
        """
        Clone if absent, otherwise refresh.

        Returns:
            UPDATED after a clone or a moving refresh, UNCHANGED otherwise.
        """
        if not self.is_present():
            await self.clone()
            return RefreshOutcome.UPDATED
        return await self.refresh()

    async def head_commit(self) -> str | None:
        """Return the cache's HEAD commit SHA, or None if unavailable."""
        if not self.is_present():
            return None
        try:
            return await self._run_git(["rev-parse", "HEAD"], step="rev-parse")
        except CacheError:
            return None

    async def current_branch(self) -> str | None:
        """Return the checked-out branch name, or None if unavailable."""
        if not self.is_present():
            return None
        try:
            return await self._run_git(
                ["rev-parse", "--abbrev-ref", "HEAD"], step="rev-parse"
            )
        except CacheError:
            return None

    async def last_update_time(self) -> datetime | None:
        """
        Committer date of the cache's HEAD commit.

        Returns:
            datetime, or None if the cache is absent or the log can't be read.
        """
        if not self.is_present():
            return None
        try:
            output = await self._run_git(["log", "-1", "--format=%cI"], step="log")
        except CacheError as e:
            logger.debug("Could not read cache log: %s", e)
            return None
        if not output:
            return None
        try:
            return datetime.fromisoformat(output)
        except ValueError:
            return None

    # Contribution primitives. Only the ContributionEngine calls these.

    async def create_branch(self, name: str) -> None:
        """Check out the tracked branch, then create and switch to `name`."""
        await self._run_git(["checkout", self.branch], step="branch")
        await self._run_git(["checkout", "-b", name], step="branch")
        logger.info("Created branch %s in cache", name)

    async def stage_and_commit(self, path_pattern: str, message: str) -> None:
        """Stage `path_pattern` and commit it with `message`."""
        await self._run_git(["add", "--", path_pattern], step="commit")
        await self._run_git(["commit", "-m", message], step="commit")
        logger.info("Committed %s in cache", path_pattern)

    async def push(self, name: str) -> None:
        """Push branch `name` to the remote and set its upstream."""
        await self._run_git(["push", self.REMOTE, name, "--set-upstream"], step="push")
        logger.info("Pushed branch %s", name)

    async def checkout_tracked_and_sync(self, discard_branch: str | None = None) -> None:
        """
        Return the cache to pure mirror state on the tracked branch.

        Forces a checkout of the tracked branch, deletes the local
        contribution branch, re-fetches, hard-resets onto the remote tip and
        removes untracked files left behind by an aborted contribution.

        Args:
            discard_branch: Local branch to delete once it is no longer
                checked out. A pushed branch lives on in the remote.
        """
        await self._run_git(["checkout", "-f", self.branch], step="checkout")
        if discard_branch and discard_branch != self.branch:
            await self._run_git(["branch", "-D", discard_branch], step="checkout")
            logger.debug("Deleted local branch %s", discard_branch)
        await self._fetch("checkout")
        await self._run_git(["reset", "--hard", self.remote_ref], step="checkout")
        await self._run_git(["clean", "-fd"], step="checkout")
        logger.info("Cache restored to %s", self.remote_ref)
