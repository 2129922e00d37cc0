"""
Data models for the contribution cycle.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ContributionResult(BaseModel):
    """
    Result of one check-and-contribute run.

    Provides detailed feedback about how far the cycle got.
    """

    success: bool = Field(description="Whether the cycle finished without error")

    changed_files: list[str] = Field(
        default_factory=list,
        description="Paths (relative to the shared subtree) that were contributed",
    )

    branch: str | None = Field(
        default=None,
        description="Name of the contribution branch, once created",
    )

    pushed: bool = Field(default=False, description="Whether the branch reached the remote")

    proposal_url: str | None = Field(
        default=None,
        description="Browser URL of the opened pull request",
    )

    proposal_error: str | None = Field(
        default=None,
        description="Why the pull request could not be opened",
    )

    archived: bool = Field(
        default=False,
        description="Whether the changed files were copied into the archive",
    )

    failed_step: str | None = Field(default=None, description="Step that aborted the cycle")

    message: str = Field(default="", description="Human-readable result message")

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def contributed(self) -> bool:
        """True when at least one file was pushed upstream."""
        return self.pushed and bool(self.changed_files)

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if not self.success:
            return f"Contribution failed: {self.message}"
        if not self.changed_files:
            return self.message or "No changes to contribute"

        parts = [f"Contributed {len(self.changed_files)} file(s)"]
        if self.branch:
            parts.append(f"on {self.branch}")
        if self.proposal_url:
            parts.append(f"({self.proposal_url})")
        elif self.proposal_error:
            parts.append("(pull request not opened)")
        return " ".join(parts)
