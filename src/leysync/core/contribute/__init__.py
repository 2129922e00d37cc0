"""
Contribution of local shared-subtree edits back upstream.

Example:
    >>> from leysync.core.contribute import ContributionEngine
    >>> engine = ContributionEngine(workspace_root, cache, config.contribute, notifier)
    >>> result = await engine.check_and_contribute()
"""

from leysync.core.contribute.models import ContributionResult
from leysync.core.contribute.service import (
    ContributionEngine,
    make_branch_name,
    sanitize_project_name,
)

__all__ = [
    "ContributionEngine",
    "ContributionResult",
    "make_branch_name",
    "sanitize_project_name",
]
