"""
Pytest configuration and shared fixtures.

Provides an isolated environment, a local bare "template repository" that
stands in for the remote, a workspace directory, and a notifier that
records what the engine tells the user.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from leysync.core.config.loader import ENV_OVERRIDES
from leysync.core.config.models import LeySyncConfig

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Keep tests away from the real user configuration.

    - XDG_CONFIG_HOME points into tmp_path
    - LEYSYNC_* overrides and GITHUB_TOKEN are unset
    - git commits get a fixed identity (asyncio subprocesses inherit os.environ)
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))


# ==============================================================================
# Git Fixtures
# ==============================================================================


def run_git(*args: str, cwd: Path) -> str:
    """Run a git command synchronously and return its stdout."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


TEMPLATE_FILES: dict[str, str] = {
    ".ai-ley/README.md": "# ai-ley core bundle\n",
    ".ai-ley/shared/instructions/general.md": "Be helpful.\n",
    ".ai-ley/shared/prompts/review.md": "Review the change.\n",
    ".github/copilot-instructions.md": "Copilot instructions\n",
    "CLAUDE.md": "Claude instructions\n",
    ".claude/settings.json": '{"model": "default"}\n',
    ".claude/node_modules/pkg/index.js": "module.exports = {};\n",
    ".claude/debug.log": "noise\n",
    ".cursor/rules/base.mdc": "cursor rule\n",
    "AGENTS.md": "Agent instructions\n",
}


class TemplateRemote:
    """
    A bare repository acting as the remote template repository.

    Changes are made in a separate working clone (`seed`) and pushed, the
    same way upstream maintainers would.
    """

    def __init__(self, root: Path) -> None:
        self.bare = root / "remote.git"
        self.seed = root / "seed"

    @property
    def url(self) -> str:
        return str(self.bare)

    def create(self, files: dict[str, str]) -> None:
        self.bare.mkdir(parents=True)
        run_git("init", "--bare", cwd=self.bare)
        run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=self.bare)

        self.seed.mkdir(parents=True)
        run_git("init", cwd=self.seed)
        run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=self.seed)
        run_git("remote", "add", "origin", str(self.bare), cwd=self.seed)
        self.commit(files, "Initial template")

    def commit(self, files: dict[str, str], message: str = "Update template") -> str:
        """Write files into the seed clone, commit, push; return the new SHA."""
        for relative, content in files.items():
            path = self.seed / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        run_git("add", "-A", cwd=self.seed)
        run_git("commit", "-m", message, cwd=self.seed)
        run_git("push", "origin", "main", cwd=self.seed)
        return self.head()

    def head(self, ref: str = "main") -> str:
        return run_git("rev-parse", ref, cwd=self.bare)

    def branches(self) -> list[str]:
        output = run_git("for-each-ref", "--format=%(refname:short)", "refs/heads", cwd=self.bare)
        return [line for line in output.splitlines() if line]

    def files_on(self, ref: str) -> list[str]:
        output = run_git("ls-tree", "-r", "--name-only", ref, cwd=self.bare)
        return output.splitlines()

    def show(self, ref: str, path: str) -> str:
        return subprocess.run(
            ["git", "show", f"{ref}:{path}"],
            cwd=self.bare,
            capture_output=True,
            text=True,
            check=True,
        ).stdout


@pytest.fixture
def template_remote(tmp_path: Path) -> TemplateRemote:
    """Provide a bare template repository seeded with TEMPLATE_FILES."""
    remote = TemplateRemote(tmp_path / "upstream")
    remote.create(TEMPLATE_FILES)
    return remote


@pytest.fixture
def local_branches():
    """Return a function listing the local branches of a clone."""

    def _list(repo: Path) -> list[str]:
        output = run_git("for-each-ref", "--format=%(refname:short)", "refs/heads", cwd=repo)
        return [line for line in output.splitlines() if line]

    return _list


# ==============================================================================
# Workspace Fixtures
# ==============================================================================


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Provide an empty workspace directory named like a real project."""
    root = tmp_path / "My App"
    root.mkdir()
    return root


@pytest.fixture
def config(template_remote: TemplateRemote) -> LeySyncConfig:
    """Default configuration pointing at the local template remote."""
    return LeySyncConfig(repository={"url": template_remote.url, "branch": "main"})


# ==============================================================================
# Notifier Fixtures
# ==============================================================================


class RecordingNotifier:
    """Notifier that records every message and answers prompts with `secret`."""

    def __init__(self, secret: str | None = None) -> None:
        self.secret = secret
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.prompts: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def prompt_secret(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        return self.secret


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Provide a notifier that records messages and declines the token prompt."""
    return RecordingNotifier()
