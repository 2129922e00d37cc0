"""
Data models for reconciliation results.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RuleFailure(BaseModel):
    """A mapping rule that could not be applied."""

    source: str = Field(description="Source path of the failing rule")
    action: str = Field(description="What was attempted (copy or remove)")
    message: str = Field(description="Error message")


class ReconcileResult(BaseModel):
    """
    Outcome of one reconciliation pass.

    Example:
        >>> result = ReconcileResult(updated=3, removed=1)
        >>> result.summary()
        'Synchronized 3 file(s), removed 1 item(s)'
    """

    updated: int = Field(default=0, description="Files written into the workspace")
    removed: int = Field(default=0, description="Targets removed for disabled integrations")
    kept_local: list[str] = Field(
        default_factory=list,
        description="Workspace files left untouched because they hold local edits",
    )
    missing_sources: list[str] = Field(
        default_factory=list,
        description="Active rules whose source is absent from the cache",
    )
    failures: list[RuleFailure] = Field(default_factory=list)
    ignore_file_updated: bool = Field(
        default=False,
        description="Whether the managed .gitignore block was added in this pass",
    )

    @property
    def changed(self) -> bool:
        return self.updated > 0 or self.removed > 0

    def summary(self) -> str:
        """Generate a human-readable one-line summary."""
        if not self.changed:
            text = "All configurations are up to date"
        else:
            parts = []
            if self.updated:
                parts.append(f"Synchronized {self.updated} file(s)")
            if self.removed:
                verb = "removed" if parts else "Removed"
                parts.append(f"{verb} {self.removed} item(s)")
            text = ", ".join(parts)

        if self.failures:
            text += f" ({len(self.failures)} rule(s) failed)"
        return text
