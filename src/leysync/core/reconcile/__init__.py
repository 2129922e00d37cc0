"""
Reconciliation of workspace files against the repository cache.

Example:
    >>> from leysync.core.reconcile import FileReconciler
    >>> reconciler = FileReconciler(workspace_root, cache_root)
    >>> result = reconciler.reconcile(config.agentic)
    >>> result.updated, result.removed
    (4, 0)
"""

from leysync.core.reconcile.ignore import BLOCK_START, ensure_ignore_block
from leysync.core.reconcile.manifest import DEPLOY_MANIFEST, DeployManifest
from leysync.core.reconcile.models import ReconcileResult, RuleFailure
from leysync.core.reconcile.rules import (
    ARCHIVE_DIR,
    CORE_BUNDLE,
    DEFAULT_RULES,
    SHARED_SUBTREE,
    MappingRule,
    RuleKind,
    should_skip,
)
from leysync.core.reconcile.service import FileReconciler

__all__ = [
    "ARCHIVE_DIR",
    "BLOCK_START",
    "CORE_BUNDLE",
    "DEFAULT_RULES",
    "DEPLOY_MANIFEST",
    "SHARED_SUBTREE",
    "DeployManifest",
    "FileReconciler",
    "MappingRule",
    "ReconcileResult",
    "RuleFailure",
    "RuleKind",
    "ensure_ignore_block",
    "should_skip",
]
