"""
Static mapping rules and the path deny-list.

Each rule says which artifact in the template repository maps to which
path in the workspace and which integration toggle controls it. The rule
without a toggle is the core bundle: always deployed, never removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from leysync.core.config.models import FeatureToggles

CORE_BUNDLE = ".ai-ley"
SHARED_SUBTREE = ".ai-ley/shared"
ARCHIVE_DIR = ".my/shared"


class RuleKind(str, Enum):
    """Whether a rule maps a single file or a whole directory."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class MappingRule:
    """
    One source → target mapping.

    Attributes:
        source: Path relative to the cache root
        target: Path relative to the workspace root
        kind: FILE or DIRECTORY
        toggle: Name of the FeatureToggles field that enables it; None for
            the protected core bundle
    """

    source: str
    target: str
    kind: RuleKind
    toggle: str | None = None

    @property
    def is_protected(self) -> bool:
        """True for rules that reconciliation must never remove."""
        return self.toggle is None

    def is_active(self, toggles: FeatureToggles) -> bool:
        """Evaluate the rule's predicate against a toggle set."""
        if self.toggle is None:
            return True
        return toggles.is_enabled(self.toggle)


def _file(path: str, toggle: str) -> MappingRule:
    return MappingRule(source=path, target=path, kind=RuleKind.FILE, toggle=toggle)


def _directory(path: str, toggle: str | None) -> MappingRule:
    return MappingRule(source=path, target=path, kind=RuleKind.DIRECTORY, toggle=toggle)


DEFAULT_RULES: tuple[MappingRule, ...] = (
    _directory(CORE_BUNDLE, None),
    _file(".github/copilot-instructions.md", "github_copilot"),
    _file("CLAUDE.md", "claude"),
    _directory(".claude", "claude"),
    _file("GEMINI.md", "gemini"),
    _directory(".gemini", "gemini"),
    _directory(".cursor", "cursor"),
    _file("cursor-config.json", "cursor"),
    _directory(".windsurf", "windsurf"),
    _file("windsurf-config.json", "windsurf"),
    _directory(".clinerules", "cline"),
    _directory(".roorules", "roo"),
    _directory(".codex", "codex"),
    _directory(".opencode", "opencode"),
    _directory(".metis", "metis"),
    _file("AGENT.md", "generic"),
    _file("AGENTS.md", "generic"),
)


# Matched anywhere in the path (also when the path is the directory itself)
SKIP_DIRECTORIES = (
    "node_modules/",
    ".next/",
    "dist/",
    "build/",
    ".git/",
    "__pycache__/",
)

# Matched against the end of the path
SKIP_SUFFIXES = (
    ".DS_Store",
    ".tmp",
    ".log",
    ".env.local",
    ".env.production",
)

# Matched anywhere in the path
SKIP_SUBSTRINGS = (
    "package-lock.json",
    "yarn.lock",
)


def should_skip(relative_path: str) -> bool:
    """
    Check whether a cache-relative path is on the deny-list.

    Args:
        relative_path: Path relative to the cache root (any separator)

    Returns:
        True if the path must never be copied into the workspace

    Example:
        >>> should_skip(".claude/node_modules/pkg/index.js")
        True
        >>> should_skip(".claude/settings.json")
        False
    """
    normalized = relative_path.replace("\\", "/")
    # Let "foo/dist" match "dist/" as well as "foo/dist/x"
    with_slash = normalized if normalized.endswith("/") else normalized + "/"
    prefixed = "/" + with_slash

    for marker in SKIP_DIRECTORIES:
        if "/" + marker in prefixed:
            return True

    if normalized.endswith(SKIP_SUFFIXES):
        return True

    return any(marker in normalized for marker in SKIP_SUBSTRINGS)
