"""
Repository cache: the local, disposable mirror of the template repository.

Example:
    >>> from leysync.core.cache import RepositoryCache
    >>> cache = RepositoryCache(repo_config)
    >>> if await cache.has_remote_changes():
    ...     await cache.refresh()
"""

from leysync.core.cache.models import RefreshOutcome
from leysync.core.cache.service import RepositoryCache

__all__ = [
    "RefreshOutcome",
    "RepositoryCache",
]
