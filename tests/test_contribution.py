"""
Tests for the ContributionEngine.

The cache is a real clone of a local bare repository, so branches pushed by
the engine can be inspected on the "remote". The pull request API is served
by httpx.MockTransport.

Tests cover:
- Change detection (new, modified, deleted, deny-listed, archived and
  stale deployed files)
- The full branch → commit → push → propose → archive cycle
- Token lookup order (environment, then prompt)
- API failures after a successful push
- Git failures and restoring the cache to its tracked branch
"""

from __future__ import annotations

import json
import subprocess
from datetime import datetime
from pathlib import Path

import httpx
import pytest

from leysync.core.cache import RepositoryCache
from leysync.core.config.models import ContributeConfig, FeatureToggles, RepoConfig
from leysync.core.contribute import (
    ContributionEngine,
    ContributionResult,
    make_branch_name,
    sanitize_project_name,
)
from leysync.core.github import PullRequestClient
from leysync.core.reconcile import ARCHIVE_DIR, SHARED_SUBTREE, FileReconciler

FIXED_NOW = datetime(2025, 1, 15, 10, 30, 0)


class FakePullRequestApi:
    """Records pull request requests and answers with a canned response."""

    def __init__(self, status_code: int = 201) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"message": "Server Error"})
        payload = json.loads(request.content)
        return httpx.Response(
            self.status_code,
            json={
                "number": 7,
                "html_url": "https://github.com/armoin2018/ai-ley/pull/7",
                "head": {"ref": payload["head"]},
                "base": {"ref": payload["base"]},
            },
        )

    def factory(self, token: str) -> PullRequestClient:
        return PullRequestClient(
            "armoin2018/ai-ley", token=token, transport=httpx.MockTransport(self.handler)
        )

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def api() -> FakePullRequestApi:
    return FakePullRequestApi()


@pytest.fixture
def cache(template_remote, workspace: Path) -> RepositoryCache:
    return RepositoryCache(
        RepoConfig(
            url=template_remote.url,
            branch="main",
            local_path=workspace / ".cache" / "ai-ley",
        )
    )


@pytest.fixture
def engine(workspace, cache, notifier, api) -> ContributionEngine:
    return ContributionEngine(
        workspace,
        cache,
        ContributeConfig(),
        notifier,
        client_factory=api.factory,
        clock=lambda: FIXED_NOW,
    )


async def _prepare(cache: RepositoryCache, workspace: Path) -> None:
    """Clone the cache and deploy the core bundle into the workspace."""
    await cache.clone()
    FileReconciler(workspace, cache.path).reconcile(FeatureToggles.only(), notify=False)


def _edit(workspace: Path, relative: str, content: str) -> None:
    path = workspace / SHARED_SUBTREE / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestNames:
    """Tests for branch naming."""

    def test_sanitize(self):
        assert sanitize_project_name("My App_v2") == "my-app-v2"

    def test_sanitize_empty(self):
        assert sanitize_project_name("") == "workspace"

    def test_branch_name(self):
        millis = int(FIXED_NOW.timestamp() * 1000)
        assert (
            make_branch_name("My App", FIXED_NOW)
            == f"contribution/my-app-2025-01-15-{millis}"
        )


class TestComputeChanges:
    """Tests for ChangeSet computation."""

    @pytest.mark.asyncio
    async def test_no_changes_after_deploy(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        assert engine.compute_changes() == []

    @pytest.mark.asyncio
    async def test_new_and_modified(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        _edit(workspace, "instructions/general.md", "Be very helpful.\n")
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        assert engine.compute_changes() == ["instructions/general.md", "prompts/new.md"]

    @pytest.mark.asyncio
    async def test_deletions_not_detected(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        (workspace / SHARED_SUBTREE / "prompts" / "review.md").unlink()

        assert engine.compute_changes() == []

    @pytest.mark.asyncio
    async def test_deny_listed_files_skipped(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        _edit(workspace, "scratch.log", "noise\n")
        _edit(workspace, "node_modules/pkg/index.js", "x\n")

        assert engine.compute_changes() == []

    @pytest.mark.asyncio
    async def test_template_update_not_proposed(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        # The cache moved on, the workspace still holds what was deployed
        (cache.path / SHARED_SUBTREE / "instructions" / "general.md").write_text("Be helpful v2.\n")

        assert engine.compute_changes() == []

    @pytest.mark.asyncio
    async def test_edit_proposed_after_template_update(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        (cache.path / SHARED_SUBTREE / "instructions" / "general.md").write_text("Be helpful v2.\n")
        _edit(workspace, "instructions/general.md", "Be very helpful.\n")

        assert engine.compute_changes() == ["instructions/general.md"]

    @pytest.mark.asyncio
    async def test_archived_copy_not_proposed_again(self, engine, cache, workspace):
        await _prepare(cache, workspace)
        _edit(workspace, "instructions/general.md", "Be very helpful.\n")
        archived = workspace / ARCHIVE_DIR / "instructions" / "general.md"
        archived.parent.mkdir(parents=True)
        archived.write_text("Be very helpful.\n")

        assert engine.compute_changes() == []


class TestCheckAndContribute:
    """Tests for the full contribution cycle."""

    @pytest.mark.asyncio
    async def test_disabled(self, workspace, cache, notifier, api):
        settings = ContributeConfig(enabled=False)
        engine = ContributionEngine(
            workspace, cache, settings, notifier, client_factory=api.factory
        )

        result = await engine.check_and_contribute()

        assert result.success is True
        assert result.message == "Contribution is disabled"
        assert notifier.infos == []

    @pytest.mark.asyncio
    async def test_cache_absent(self, engine):
        result = await engine.check_and_contribute()

        assert result.success is False
        assert result.failed_step == "diff"

    @pytest.mark.asyncio
    async def test_no_changes(self, engine, cache, workspace, template_remote, notifier):
        await _prepare(cache, workspace)

        result = await engine.check_and_contribute()

        assert result.success is True
        assert result.message == "No changes to contribute"
        assert template_remote.branches() == ["main"]
        assert notifier.infos == []

    @pytest.mark.asyncio
    async def test_full_cycle(
        self,
        engine,
        cache,
        workspace,
        template_remote,
        notifier,
        api,
        monkeypatch,
        local_branches,
    ):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        await _prepare(cache, workspace)
        main_head = template_remote.head()
        _edit(workspace, "instructions/general.md", "Be very helpful.\n")
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        result = await engine.check_and_contribute()

        branch = make_branch_name("My App", FIXED_NOW)
        assert result.success is True
        assert result.changed_files == ["instructions/general.md", "prompts/new.md"]
        assert result.branch == branch
        assert result.pushed is True
        assert result.archived is True
        assert result.contributed is True
        assert result.proposal_url == "https://github.com/armoin2018/ai-ley/pull/7"
        assert result.message == "Contribution complete! 2 file(s) contributed."

        # Upstream got exactly the edited files on a new branch
        assert branch in template_remote.branches()
        assert template_remote.head() == main_head
        assert template_remote.show(branch, f"{SHARED_SUBTREE}/prompts/new.md") == "A new prompt.\n"
        assert (
            template_remote.show(branch, f"{SHARED_SUBTREE}/instructions/general.md")
            == "Be very helpful.\n"
        )

        # Pull request against the tracked branch
        assert api.requests[0].headers["Authorization"] == "Bearer env-token"
        assert api.payloads[0]["head"] == branch
        assert api.payloads[0]["base"] == "main"
        assert "- prompts/new.md" in api.payloads[0]["body"]
        assert notifier.prompts == []

        # Archive copy under the workspace
        assert (workspace / ARCHIVE_DIR / "prompts" / "new.md").read_text() == "A new prompt.\n"

        # Cache back on the tracked branch, edits not left behind in it
        assert await cache.current_branch() == "main"
        assert await cache.head_commit() == main_head
        assert not (cache.path / SHARED_SUBTREE / "prompts" / "new.md").exists()
        assert local_branches(cache.path) == ["main"]

        assert notifier.infos[0].startswith("Detected 2 changed file(s)")
        assert any("View at: https://github.com/armoin2018/ai-ley/pull/7" in m for m in notifier.infos)
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_second_run_does_not_repeat(
        self, engine, cache, workspace, template_remote, api, monkeypatch
    ):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        await _prepare(cache, workspace)
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        await engine.check_and_contribute()
        second = await engine.check_and_contribute()

        assert second.success is True
        assert second.changed_files == []
        assert len(api.requests) == 1
        assert len(template_remote.branches()) == 2

    @pytest.mark.asyncio
    async def test_no_token_pushes_without_proposal(
        self, engine, cache, workspace, template_remote, notifier, api
    ):
        await _prepare(cache, workspace)
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        result = await engine.check_and_contribute()

        assert result.success is True
        assert result.pushed is True
        assert result.proposal_url is None
        assert result.proposal_error == "No access token available"
        assert result.archived is True
        assert result.branch in template_remote.branches()
        assert api.requests == []
        assert len(notifier.prompts) == 1
        assert "cannot create pull request" in notifier.warnings[0]
        assert result.summary().endswith("(pull request not opened)")

    @pytest.mark.asyncio
    async def test_token_from_prompt(self, engine, cache, workspace, notifier, api):
        notifier.secret = "prompted-token"
        await _prepare(cache, workspace)
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        result = await engine.check_and_contribute()

        assert result.proposal_url is not None
        assert api.requests[0].headers["Authorization"] == "Bearer prompted-token"

    @pytest.mark.asyncio
    async def test_api_failure_after_push(
        self, engine, cache, workspace, template_remote, notifier, api, monkeypatch
    ):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        api.status_code = 500
        await _prepare(cache, workspace)
        _edit(workspace, "prompts/new.md", "A new prompt.\n")

        result = await engine.check_and_contribute()

        assert result.success is True
        assert result.pushed is True
        assert result.proposal_url is None
        assert "HTTP 500" in result.proposal_error
        assert result.archived is True
        assert result.branch in template_remote.branches()
        assert len(notifier.errors) == 1
        assert notifier.errors[0].startswith("Failed to create pull request")
        assert await cache.current_branch() == "main"

    @pytest.mark.asyncio
    async def test_push_failure_restores_cache(
        self, engine, cache, workspace, template_remote, notifier, api, local_branches
    ):
        await _prepare(cache, workspace)
        _edit(workspace, "prompts/new.md", "A new prompt.\n")
        # Point the cache at a remote that does not exist
        subprocess.run(
            ["git", "remote", "set-url", "origin", str(workspace / "missing.git")],
            cwd=cache.path,
            check=True,
            capture_output=True,
        )

        result = await engine.check_and_contribute()

        assert result.success is False
        assert result.failed_step == "push"
        assert result.pushed is False
        assert result.archived is False
        assert api.requests == []
        assert template_remote.branches() == ["main"]
        assert len(notifier.errors) == 1
        assert notifier.errors[0].startswith("Contribution failed - ")
        assert await cache.current_branch() == "main"
        assert not (workspace / ARCHIVE_DIR).exists()
        assert local_branches(cache.path) == ["main"]


class TestContributionResult:
    """Tests for the result summary."""

    def test_failed_summary(self):
        result = ContributionResult(success=False, message="boom")
        assert result.summary() == "Contribution failed: boom"

    def test_contributed_requires_push(self):
        result = ContributionResult(success=True, changed_files=["a.md"])
        assert result.contributed is False
