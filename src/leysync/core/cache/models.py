"""
Data models for the repository cache.
"""

from __future__ import annotations

from enum import Enum


class RefreshOutcome(str, Enum):
    """Result of bringing the cache in line with the remote."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
