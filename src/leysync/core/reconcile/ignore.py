"""
Managed block in the workspace .gitignore.

The block is appended once and recognised afterwards by its opening
marker line, so running it on every reconciliation pass is a no-op.
"""

from __future__ import annotations

import logging
from pathlib import Path

from leysync.core.reconcile.rules import CORE_BUNDLE

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".gitignore"
BLOCK_START = "# >>> leysync managed entries >>>"
BLOCK_END = "# <<< leysync managed entries <<<"


def ignore_entries(workspace_root: Path, cache_path: Path) -> list[str]:
    """
    Entries that belong in the managed block.

    The cache is listed relative to the workspace when it lives inside it;
    a cache outside the workspace needs no entry.
    """
    entries: list[str] = []
    try:
        relative_cache = cache_path.resolve().relative_to(workspace_root.resolve())
    except ValueError:
        relative_cache = None
    if relative_cache is not None and relative_cache.parts:
        entries.append(relative_cache.as_posix().rstrip("/") + "/")
    entries.append(f"{CORE_BUNDLE}/")
    return entries


def has_ignore_block(ignore_file: Path) -> bool:
    """Return True if the managed block marker is already present."""
    if not ignore_file.exists():
        return False
    content = ignore_file.read_text(encoding="utf-8", errors="replace")
    return BLOCK_START in content.splitlines()


def ensure_ignore_block(workspace_root: Path, cache_path: Path) -> bool:
    """
    Append the managed block to <workspace>/.gitignore if it is missing.

    Args:
        workspace_root: Workspace root directory
        cache_path: Resolved cache path

    Returns:
        True if the block was written, False if it was already there

    Raises:
        OSError: If the file can't be read or written
    """
    ignore_file = workspace_root / IGNORE_FILE_NAME

    if has_ignore_block(ignore_file):
        return False

    existing = ""
    if ignore_file.exists():
        existing = ignore_file.read_text(encoding="utf-8", errors="replace")

    lines = [BLOCK_START, *ignore_entries(workspace_root, cache_path), BLOCK_END]
    block = "\n".join(lines) + "\n"

    prefix = ""
    if existing and not existing.endswith("\n"):
        prefix = "\n"
    if existing:
        prefix += "\n"

    ignore_file.write_text(existing + prefix + block, encoding="utf-8")
    logger.info("Added leysync entries to %s", ignore_file)
    return True
