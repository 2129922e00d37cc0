"""
Record of what reconciliation last deployed into a workspace.

The manifest maps workspace-relative paths to the SHA-256 digest of the
content the previous pass wrote (or found already in place). A workspace
file whose digest still equals its recorded one has not been touched since
it was deployed, so a newer template version may replace it and it is never
a local edit. A file without an entry was never deployed by leysync.

The manifest lives inside the core bundle directory, which the managed
.gitignore block already excludes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from leysync.core.reconcile.rules import CORE_BUNDLE
from leysync.utils.files import UNREADABLE, hash_file

logger = logging.getLogger(__name__)

DEPLOY_MANIFEST = f"{CORE_BUNDLE}/.leysync-manifest.json"


class ManifestData(BaseModel):
    """On-disk form of the deploy manifest."""

    version: int = 1
    files: dict[str, str] = Field(
        default_factory=dict,
        description="Workspace-relative path -> digest of the deployed content",
    )


class DeployManifest:
    """
    Baselines from the previous pass plus the entries recorded by this one.

    Example:
        >>> manifest = DeployManifest.load(workspace_root)
        >>> manifest.is_locally_edited(".ai-ley/shared/a.md", workspace_root / ".ai-ley/shared/a.md")
        False
        >>> manifest.record(".ai-ley/shared/a.md", digest)
        >>> manifest.save()
        True
    """

    def __init__(self, path: Path, files: dict[str, str] | None = None) -> None:
        self.path = path
        self.previous: dict[str, str] = dict(files or {})
        self.current: dict[str, str] = {}

    @classmethod
    def load(cls, workspace_root: Path) -> DeployManifest:
        """
        Read the manifest of a workspace.

        A missing or corrupt file yields an empty manifest, which makes every
        differing file count as a local edit.
        """
        path = workspace_root / DEPLOY_MANIFEST
        if not path.is_file():
            return cls(path)
        try:
            data = ManifestData.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable deploy manifest %s: %s", path, e)
            return cls(path)
        return cls(path, data.files)

    def baseline(self, relative: str) -> str | None:
        """Digest deployed for `relative` by the previous pass, if any."""
        return self.previous.get(relative)

    def is_locally_edited(self, relative: str, path: Path) -> bool:
        """True unless `path` still holds exactly what was last deployed."""
        baseline = self.baseline(relative)
        if baseline is None:
            return True
        digest = hash_file(path)
        return digest == UNREADABLE or digest != baseline

    def record(self, relative: str, digest: str) -> None:
        """Note that `relative` now holds content with `digest`."""
        if digest != UNREADABLE:
            self.current[relative] = digest

    def carry_over(self, prefix: str) -> None:
        """Keep previous entries at or below `prefix` that this pass did not record."""
        prefix = prefix.strip("/")
        for relative, digest in self.previous.items():
            if relative == prefix or relative.startswith(prefix + "/"):
                self.current.setdefault(relative, digest)

    def save(self) -> bool:
        """
        Write this pass's entries if they differ from the previous ones.

        Returns:
            True if the file was written

        Raises:
            OSError: If the file can't be written
        """
        if self.current == self.previous and (self.path.exists() or not self.current):
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = ManifestData(files=dict(sorted(self.current.items())))

        # Write atomically via temp file
        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_text(data.model_dump_json(indent=2) + "\n", encoding="utf-8")
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        self.previous = dict(self.current)
        logger.debug("Wrote deploy manifest with %d entries", len(self.current))
        return True
