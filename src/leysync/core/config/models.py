"""
Configuration data models for leysync.

These models define the structure of .leysync.json and
~/.config/leysync/config.json files, with validation and type safety
via Pydantic.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class RepositoryConfig(BaseModel):
    """Remote template repository to mirror."""

    url: str = Field(
        default="https://github.com/armoin2018/ai-ley.git",
        min_length=1,
        description="Clone URL of the template repository",
    )
    branch: str = Field(
        default="main",
        min_length=1,
        description="Branch the cache tracks",
    )


class CacheConfig(BaseModel):
    """Where the local mirror lives."""

    directory: str = Field(
        default=".cache/ai-ley",
        min_length=1,
        description="Cache path; relative paths resolve against the workspace root",
    )


class UpdateConfig(BaseModel):
    """
    Scheduler settings.

    An interval of zero (or less) disables the timer just like enabled=false.
    """

    enabled: bool = Field(default=True, description="Run the periodic update timer")
    interval: int = Field(
        default=86400,
        description="Seconds between scheduled update checks",
    )


class FeatureToggles(BaseModel):
    """
    Which agent integrations should be deployed into the workspace.

    The core bundle is always on; it is exposed as a read-only property so
    rule predicates can treat it like any other toggle.
    """

    model_config = ConfigDict(extra="ignore")

    github_copilot: bool = True
    claude: bool = True
    gemini: bool = True
    cursor: bool = True
    windsurf: bool = True
    cline: bool = True
    roo: bool = True
    codex: bool = True
    opencode: bool = True
    metis: bool = True
    generic: bool = True

    @property
    def core(self) -> bool:
        return True

    def is_enabled(self, name: str) -> bool:
        """Return the value of a named toggle (unknown names are off)."""
        if name == "core":
            return True
        value = getattr(self, name, False)
        return value is True

    def enabled_names(self) -> list[str]:
        """Names of all enabled integrations, in declaration order."""
        return [name for name in type(self).model_fields if getattr(self, name)]

    @classmethod
    def only(cls, *names: str) -> FeatureToggles:
        """Build a toggle set with just the named integrations enabled."""
        values = {name: name in names for name in cls.model_fields}
        return cls(**values)


class ContributeConfig(BaseModel):
    """Settings for sending shared-subtree edits back upstream."""

    enabled: bool = Field(
        default=True,
        description="Detect local edits under the shared subtree and propose them upstream",
    )
    upstream_repo: str = Field(
        default="armoin2018/ai-ley",
        pattern=r"^[\w.-]+/[\w.-]+$",
        description="owner/name of the repository pull requests are opened against",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )
    token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding the access token",
    )


class IgnoreFileConfig(BaseModel):
    """Managed block in the workspace .gitignore."""

    auto_update: bool = Field(
        default=True,
        description="Add the leysync entries to .gitignore after reconciliation",
    )


class RepoConfig(BaseModel):
    """
    Resolved repository settings for one workspace.

    Immutable: a change requires rebuilding the repository cache.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    branch: str
    local_path: Path


class LeySyncConfig(BaseModel):
    """
    Top-level leysync configuration.

    Example:
        >>> config = LeySyncConfig()
        >>> config.update.interval
        86400
        >>> config.agentic.claude
        True
    """

    model_config = ConfigDict(extra="ignore")

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)
    agentic: FeatureToggles = Field(default_factory=FeatureToggles)
    contribute: ContributeConfig = Field(default_factory=ContributeConfig)
    ignore_file: IgnoreFileConfig = Field(default_factory=IgnoreFileConfig)

    def cache_path(self, workspace_root: Path) -> Path:
        """Resolve the cache directory against a workspace root."""
        directory = Path(self.cache.directory).expanduser()
        if directory.is_absolute():
            return directory
        return workspace_root / directory

    def repo_config(self, workspace_root: Path) -> RepoConfig:
        """Build the immutable RepoConfig for a workspace."""
        return RepoConfig(
            url=self.repository.url,
            branch=self.repository.branch,
            local_path=self.cache_path(workspace_root),
        )
