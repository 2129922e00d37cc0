"""
Scheduling of sync cycles per workspace.

Example:
    >>> from leysync.core.scheduler import WorkspaceContext, SyncScheduler
    >>> context = WorkspaceContext.build(root, notifier, load_config(root))
    >>> scheduler = SyncScheduler(context)
    >>> report = await scheduler.run_cycle(force=True)
"""

from leysync.core.scheduler.context import WorkspaceContext
from leysync.core.scheduler.models import (
    STATUS_TEXT,
    CycleAction,
    CycleReport,
    SchedulerState,
)
from leysync.core.scheduler.registry import WorkspaceRegistry
from leysync.core.scheduler.service import SyncScheduler

__all__ = [
    "STATUS_TEXT",
    "CycleAction",
    "CycleReport",
    "SchedulerState",
    "SyncScheduler",
    "WorkspaceContext",
    "WorkspaceRegistry",
]
