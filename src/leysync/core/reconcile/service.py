"""
File reconciliation between the repository cache and a workspace.

For every mapping rule the reconciler decides whether the target should
exist (copy what changed), or not (remove it), comparing content hashes so
that an unchanged file is never rewritten. Rules are evaluated
independently: a failing rule is recorded and the pass moves on.

Each pass records what it deployed in the workspace's DeployManifest. Under
a keep_local prefix, a file that no longer matches its recorded digest holds
a local edit and is left alone; one that still matches is replaced by a
newer template version.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from leysync.core.config.models import FeatureToggles
from leysync.core.exceptions import ReconcileError
from leysync.core.notify import Notifier
from leysync.core.reconcile.ignore import ensure_ignore_block
from leysync.core.reconcile.manifest import DEPLOY_MANIFEST, DeployManifest
from leysync.core.reconcile.models import ReconcileResult, RuleFailure
from leysync.core.reconcile.rules import DEFAULT_RULES, MappingRule, RuleKind, should_skip
from leysync.utils.files import copy_file, files_match, hash_file

logger = logging.getLogger(__name__)


class FileReconciler:
    """
    Makes a workspace match the mapping rules for a given toggle set.

    Example:
        >>> reconciler = FileReconciler(workspace_root, cache_root)
        >>> result = reconciler.reconcile(FeatureToggles.only("claude"))
        >>> print(result.summary())
        Synchronized 12 file(s)
    """

    def __init__(
        self,
        workspace_root: Path,
        cache_root: Path,
        *,
        rules: Sequence[MappingRule] = DEFAULT_RULES,
        notifier: Notifier | None = None,
        keep_local: Iterable[str] = (),
        update_ignore_file: bool = False,
    ) -> None:
        """
        Initialize the reconciler.

        Args:
            workspace_root: Root of the workspace being kept in sync.
            cache_root: Root of the repository cache (the source of truth).
            rules: Mapping rules, evaluated in order.
            notifier: Receives the consolidated summary and rule warnings.
            keep_local: Workspace-relative prefixes whose locally edited files
                are never overwritten, because the edits may not have been
                contributed yet. Files unchanged since the last deploy are
                updated and missing files are still seeded.
            update_ignore_file: Ensure the managed .gitignore block after
                each pass.
        """
        self.workspace_root = workspace_root
        self.cache_root = cache_root
        self.rules = tuple(rules)
        self.notifier = notifier
        self.keep_local = tuple(prefix.strip("/") for prefix in keep_local)
        self.update_ignore_file = update_ignore_file

    def _is_kept_local(self, relative_target: str) -> bool:
        return any(
            relative_target == prefix or relative_target.startswith(prefix + "/")
            for prefix in self.keep_local
        )

    def _sync_file(
        self,
        source: Path,
        target: Path,
        result: ReconcileResult,
        manifest: DeployManifest,
    ) -> None:
        """Copy source over target unless their content already matches."""
        relative_target = target.relative_to(self.workspace_root).as_posix()

        if files_match(source, target):
            manifest.record(relative_target, hash_file(target))
            return

        if (
            target.is_file()
            and self._is_kept_local(relative_target)
            and manifest.is_locally_edited(relative_target, target)
        ):
            logger.debug("Keeping local edit: %s", relative_target)
            result.kept_local.append(relative_target)
            manifest.carry_over(relative_target)
            return

        copy_file(source, target)
        manifest.record(relative_target, hash_file(target))
        result.updated += 1
        logger.debug("Updated %s", relative_target)

    def _sync_directory(
        self,
        source: Path,
        target: Path,
        result: ReconcileResult,
        manifest: DeployManifest,
    ) -> None:
        """Recursively mirror a directory, honouring the deny-list."""
        target.mkdir(parents=True, exist_ok=True)

        for entry in sorted(source.iterdir()):
            relative = entry.relative_to(self.cache_root).as_posix()
            if should_skip(relative):
                logger.debug("Skipping excluded path: %s", relative)
                continue

            target_entry = target / entry.name
            if entry.is_dir():
                self._sync_directory(entry, target_entry, result, manifest)
            elif entry.is_file():
                self._sync_file(entry, target_entry, result, manifest)

    def _remove_target(self, target: Path) -> bool:
        """Remove a file or directory target. Returns True if something was removed."""
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
            return True
        if target.exists() or target.is_symlink():
            target.unlink()
            return True
        return False

    def _apply_rule(
        self,
        rule: MappingRule,
        toggles: FeatureToggles,
        result: ReconcileResult,
        manifest: DeployManifest,
    ) -> None:
        source = self.cache_root / rule.source
        target = self.workspace_root / rule.target

        if not rule.is_active(toggles):
            if rule.is_protected:
                return
            if self._remove_target(target):
                result.removed += 1
                logger.info("Removed %s (integration %s disabled)", rule.target, rule.toggle)
            return

        if not source.exists():
            logger.info("Source not found: %s", rule.source)
            result.missing_sources.append(rule.source)
            manifest.carry_over(rule.target)
            return

        if rule.kind == RuleKind.FILE:
            self._sync_file(source, target, result, manifest)
        else:
            self._sync_directory(source, target, result, manifest)

    def reconcile(self, toggles: FeatureToggles, *, notify: bool = True) -> ReconcileResult:
        """
        Bring the workspace in line with the mapping rules.

        Args:
            toggles: Which integrations are enabled for this pass.
            notify: Send the consolidated summary (and rule warnings) to the
                notifier. Silent passes only log.

        Returns:
            ReconcileResult with update/removal counts and any per-rule failures.
        """
        result = ReconcileResult()
        manifest = DeployManifest.load(self.workspace_root)

        for rule in self.rules:
            action = "copy" if rule.is_active(toggles) else "remove"
            try:
                self._apply_rule(rule, toggles, result, manifest)
            except OSError as e:
                error = ReconcileError(rule.source, f"Failed to {action}: {e}")
                logger.warning("%s", error)
                result.failures.append(
                    RuleFailure(source=rule.source, action=action, message=str(e))
                )
                manifest.carry_over(rule.target)
                if notify and self.notifier is not None:
                    self.notifier.warning(f"Failed to {action} {rule.source}: {e}")

        try:
            manifest.save()
        except OSError as e:
            logger.warning("Could not write %s: %s", DEPLOY_MANIFEST, e)
            result.failures.append(
                RuleFailure(source=DEPLOY_MANIFEST, action="update", message=str(e))
            )

        if self.update_ignore_file:
            try:
                result.ignore_file_updated = ensure_ignore_block(
                    self.workspace_root, self.cache_root
                )
            except OSError as e:
                logger.warning("Could not update .gitignore: %s", e)
                result.failures.append(
                    RuleFailure(source=".gitignore", action="update", message=str(e))
                )

        logger.info(
            "Reconciled %s: %d updated, %d removed, %d kept local, %d missing",
            self.workspace_root,
            result.updated,
            result.removed,
            len(result.kept_local),
            len(result.missing_sources),
        )

        if notify and self.notifier is not None:
            self.notifier.info(result.summary())

        return result
