"""
.env file loading for the CLI.

leysync only reads two kinds of value from the environment: the access
token named by contribute.token_env (GITHUB_TOKEN by default) and the
LEYSYNC_* overrides. Both may live in a .env file instead of the shell.

Files are loaded most specific first with override=False, so the first
file to define a variable wins and the shell wins over all of them:

    shell > <workspace>/.env.local > <workspace>/.env > ~/.config/leysync/.env
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)


def env_files(workspace_root: Path | None = None) -> list[Path]:
    """Candidate .env files for a workspace, highest precedence first."""
    if workspace_root is None:
        workspace_root = Path.cwd()
    return [
        workspace_root / ".env.local",
        workspace_root / ".env",
        get_xdg_config_home() / "leysync" / ".env",
    ]


def load_env_files(workspace_root: Path | None = None) -> list[Path]:
    """
    Load the workspace and user .env files into os.environ.

    Args:
        workspace_root: Workspace whose .env files are read (defaults to cwd)

    Returns:
        The files that existed and were read
    """
    loaded: list[Path] = []
    for path in env_files(workspace_root):
        if not path.is_file():
            continue
        load_dotenv(path, override=False)
        logger.debug("Loaded environment from %s", path)
        loaded.append(path)
    return loaded
