"""
Data models for the sync scheduler.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from leysync.core.contribute.models import ContributionResult
from leysync.core.reconcile.models import ReconcileResult


class SchedulerState(str, Enum):
    """
    Most recent lifecycle action of a scheduler.

    Observational only; never used to decide whether a cycle may run.
    """

    IDLE = "idle"
    CHECKING = "checking"
    CLONING = "cloning"
    UPDATING = "updating"
    INITIALIZING = "initializing"
    ERROR = "error"


STATUS_TEXT: dict[SchedulerState, str] = {
    SchedulerState.IDLE: "Ready",
    SchedulerState.CHECKING: "Checking for updates...",
    SchedulerState.CLONING: "Cloning repository...",
    SchedulerState.UPDATING: "Updating...",
    SchedulerState.INITIALIZING: "Initializing...",
    SchedulerState.ERROR: "Error",
}


class CycleAction(str, Enum):
    """Which branch a cycle took."""

    CLONED = "cloned"
    FORCED = "forced"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class CycleReport(BaseModel):
    """What a single scheduler cycle did."""

    forced: bool = Field(default=False, description="Whether the cycle was forced")
    action: CycleAction = Field(default=CycleAction.UNCHANGED)
    reconcile: ReconcileResult | None = Field(default=None)
    contribution: ContributionResult | None = Field(default=None)
    error: str | None = Field(default=None, description="Error that ended the cycle")

    @property
    def success(self) -> bool:
        return self.error is None
