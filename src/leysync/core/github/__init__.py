"""
GitHub integration for leysync.

Opens pull requests for contributed shared-subtree edits.
"""

from leysync.core.github.client import PullRequestClient
from leysync.core.github.models import PullRequest

__all__ = [
    "PullRequest",
    "PullRequestClient",
]
