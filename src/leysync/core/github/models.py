"""
GitHub data models.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """A pull request as returned by the GitHub REST API."""

    number: int = Field(description="Pull request number")
    url: str = Field(description="Browser URL of the pull request")
    head: str = Field(default="", description="Head branch name")
    base: str = Field(default="", description="Base branch name")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequest:
        """Build from a `POST /repos/{owner}/{repo}/pulls` response."""
        head = data.get("head") or {}
        base = data.get("base") or {}
        return cls(
            number=int(data.get("number", 0)),
            url=str(data.get("html_url", "")),
            head=str(head.get("ref", "")) if isinstance(head, dict) else "",
            base=str(base.get("ref", "")) if isinstance(base, dict) else "",
        )
