"""
Tests for WorkspaceRegistry.
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from leysync.core.cache import RepositoryCache
from leysync.core.config.models import LeySyncConfig
from leysync.core.scheduler import WorkspaceRegistry


@pytest.fixture
def current(config: LeySyncConfig) -> dict[str, LeySyncConfig]:
    contribute = config.contribute.model_copy(update={"enabled": False})
    return {"config": config.model_copy(update={"contribute": contribute})}


@pytest.fixture
def registry(notifier, current) -> WorkspaceRegistry:
    return WorkspaceRegistry(
        lambda root: notifier,
        config_loader=lambda root: current["config"],
    )


class TestActivation:
    """Tests for activate/deactivate."""

    @pytest.mark.asyncio
    async def test_activate_starts_scheduler(self, registry, workspace):
        try:
            scheduler = await registry.activate(workspace)

            assert workspace in registry
            assert len(registry) == 1
            assert registry.roots == [workspace.resolve()]
            assert scheduler.is_running
            assert scheduler.context.cache.is_present()
            assert (workspace / "CLAUDE.md").exists()
        finally:
            await registry.deactivate_all()

    @pytest.mark.asyncio
    async def test_activate_twice_returns_same_scheduler(self, registry, workspace):
        try:
            first = await registry.activate(workspace)
            second = await registry.activate(workspace / ".." / workspace.name)

            assert first is second
            assert len(registry) == 1
        finally:
            await registry.deactivate_all()

    @pytest.mark.asyncio
    async def test_deactivate_stops_scheduler(self, registry, workspace):
        scheduler = await registry.activate(workspace)

        await registry.deactivate(workspace)

        assert scheduler.is_running is False
        assert workspace not in registry
        assert registry.get(workspace) is None

    @pytest.mark.asyncio
    async def test_deactivate_during_first_clone(self, registry, workspace):
        original_clone = RepositoryCache.clone
        clone_started = asyncio.Event()

        async def slow_clone(cache: RepositoryCache) -> None:
            clone_started.set()
            await asyncio.sleep(0.3)
            await original_clone(cache)

        with patch.object(RepositoryCache, "clone", slow_clone):
            activation = asyncio.create_task(registry.activate(workspace))
            await clone_started.wait()
            await registry.deactivate(workspace)
            scheduler = await activation

        assert len(registry) == 0
        assert scheduler.is_running is False
        assert scheduler.context.cache.is_present()

    @pytest.mark.asyncio
    async def test_deactivate_unknown_is_noop(self, registry, tmp_path):
        await registry.deactivate(tmp_path / "unknown")
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_workspaces_are_independent(self, registry, workspace, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        try:
            first = await registry.activate(workspace)
            second = await registry.activate(other)

            assert first is not second
            assert first.context.cache.path != second.context.cache.path
            assert (other / "CLAUDE.md").exists()
        finally:
            await registry.deactivate_all()

        assert len(registry) == 0


class TestConfigChanges:
    """Tests for routing configuration changes."""

    @pytest.mark.asyncio
    async def test_repository_change_rebuilds(self, registry, workspace, current):
        try:
            before = await registry.activate(workspace)
            moved = current["config"].cache.model_copy(update={"directory": ".cache/other"})
            current["config"] = current["config"].model_copy(update={"cache": moved})

            await registry.handle_config_change(workspace, ["cache"])

            after = registry.get(workspace)
            assert after is not None
            assert after is not before
            assert before.is_running is False
            assert after.context.cache.path == workspace.resolve() / ".cache" / "other"
            assert after.context.cache.is_present()
        finally:
            await registry.deactivate_all()

    @pytest.mark.asyncio
    async def test_other_change_keeps_scheduler(self, registry, workspace):
        try:
            before = await registry.activate(workspace)

            await registry.handle_config_change(workspace, ["agentic"])

            assert registry.get(workspace) is before
        finally:
            await registry.deactivate_all()

    @pytest.mark.asyncio
    async def test_change_for_inactive_workspace_is_ignored(self, registry, workspace):
        await registry.handle_config_change(workspace, ["repository"])
        assert len(registry) == 0
