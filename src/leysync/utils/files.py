"""
File helpers shared by the reconciler and the contribution engine.

Content comparison is done by SHA-256 digest so an unchanged file is never
rewritten.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

# Returned for files that cannot be read
UNREADABLE = ""

_CHUNK_SIZE = 1024 * 1024


def hash_file(path: Path) -> str:
    """Compute the SHA-256 hex digest of a file, or UNREADABLE on error.

    Args:
        path: File to hash

    Returns:
        Hex digest string, or the empty sentinel if the file can't be read
    """
    digest = hashlib.sha256()
    try:
        with path.open("rb") as f:
            while chunk := f.read(_CHUNK_SIZE):
                digest.update(chunk)
    except OSError as e:
        logger.debug("Cannot hash %s: %s", path, e)
        return UNREADABLE
    return digest.hexdigest()


def files_match(source: Path, target: Path) -> bool:
    """Check whether target exists and has the same content as source.

    A missing target never matches. Two unreadable files never match either:
    the sentinel says nothing about content, so the caller attempts the copy
    and gets a real error if the source is truly unreadable.
    """
    if not target.is_file():
        return False
    source_hash = hash_file(source)
    if source_hash == UNREADABLE:
        return False
    target_hash = hash_file(target)
    if target_hash == UNREADABLE:
        return False
    return source_hash == target_hash


def copy_file(source: Path, target: Path) -> None:
    """Copy a file, creating the target's parent directories first."""
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)


def list_files(root: Path) -> list[str]:
    """List all regular files under root as sorted POSIX relative paths.

    Returns an empty list when root does not exist.
    """
    if not root.is_dir():
        return []
    return sorted(
        path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()
    )
