"""
Per-workspace sync scheduler.

Drives RepositoryCache → FileReconciler → ContributionEngine on a repeating
asyncio timer and on demand. Timer ticks, forced updates and
configuration-change reactions all go through the same per-workspace lock,
so a second request waits for the running cycle instead of interleaving
with it on the cache directory.

State machine (observational only):

    idle → checking → {cloning | updating | initializing} → idle
                 ↘ error (from any active state; left on the next cycle)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from leysync.core.cache.models import RefreshOutcome
from leysync.core.config.loader import load_config
from leysync.core.config.models import FeatureToggles, LeySyncConfig
from leysync.core.reconcile.models import ReconcileResult
from leysync.core.scheduler.context import WorkspaceContext
from leysync.core.scheduler.models import (
    STATUS_TEXT,
    CycleAction,
    CycleReport,
    SchedulerState,
)

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[], LeySyncConfig]


class SyncScheduler:
    """
    Keeps one workspace in sync with the template repository.

    Example:
        >>> scheduler = SyncScheduler(context)
        >>> await scheduler.start(force_initial_sync=True)
        >>> scheduler.status_text()
        'Ready'
        >>> scheduler.stop()
    """

    def __init__(
        self,
        context: WorkspaceContext,
        *,
        config_loader: ConfigLoader | None = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            context: Engine instances for the workspace.
            config_loader: Returns a fresh configuration snapshot; called once
                per cycle. Defaults to load_config(context.root).
        """
        self.context = context
        self._config_loader = config_loader or (lambda: load_config(context.root))
        self.state = SchedulerState.IDLE
        self.last_update_at: datetime | None = None
        self.last_error: str | None = None
        self._lock = asyncio.Lock()
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[CycleReport]] = set()
        # Bumped by every stop(); a start() that sees it move must not arm
        self._stop_count = 0

    @property
    def is_running(self) -> bool:
        """True while the repeating timer is armed."""
        return self._timer is not None and not self._timer.done()

    def _set_state(self, state: SchedulerState) -> None:
        if state != self.state:
            logger.debug("%s: %s -> %s", self.context.root.name, self.state.value, state.value)
        self.state = state

    def status_text(self) -> str:
        """Human-readable status, e.g. for a status bar."""
        return STATUS_TEXT[self.state]

    def tooltip(self) -> str:
        """Longer status line including the last update time."""
        if self.last_update_at is not None:
            return f"Last updated: {self.last_update_at:%Y-%m-%d %H:%M:%S}"
        return "Not updated yet"

    def _read_config(self) -> LeySyncConfig:
        config = self._config_loader()
        self.context.apply(config)
        return config

    async def _reconcile(self, toggles: FeatureToggles, *, notify: bool) -> ReconcileResult:
        return await asyncio.to_thread(
            self.context.reconciler.reconcile, toggles, notify=notify
        )

    def _mark_updated(self) -> None:
        self.last_update_at = datetime.now()

    def _fail(self, report: CycleReport, error: Exception, prefix: str) -> None:
        logger.exception("%s for %s", prefix, self.context.root)
        self._set_state(SchedulerState.ERROR)
        self.last_error = str(error)
        report.action = CycleAction.FAILED
        report.error = str(error)
        self.context.notifier.error(f"{prefix}: {error}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, force_initial_sync: bool = False) -> None:
        """
        Run one immediate cycle, then arm the repeating timer.

        Does nothing beyond stopping an existing timer when updates are
        disabled or the interval is not positive. If stop() is called while
        the immediate cycle runs, the timer is not armed.

        Args:
            force_initial_sync: Make the immediate cycle a forced one.
        """
        try:
            config = self._read_config()
        except Exception as e:
            report = CycleReport(forced=force_initial_sync)
            self._fail(report, e, "Update failed")
            return

        interval = config.update.interval
        if not config.update.enabled or interval <= 0:
            self.stop()
            logger.info("Scheduled updates disabled for %s", self.context.root)
            return

        self.stop()
        stop_count = self._stop_count
        self._set_state(SchedulerState.INITIALIZING)
        await asyncio.shield(self._spawn_cycle(force_initial_sync))

        if stop_count != self._stop_count:
            logger.info("Scheduler for %s stopped during its first cycle", self.context.root)
            return

        self._timer = asyncio.create_task(self._tick_loop(interval))
        logger.info("Update scheduler started with interval: %d seconds", interval)

    def stop(self) -> None:
        """
        Cancel the repeating timer. Idempotent.

        A cycle that is already running is not interrupted, and a start()
        still waiting for its first cycle will not arm the timer.
        """
        self._stop_count += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("Update scheduler stopped for %s", self.context.root)

    async def restart(self) -> None:
        """Stop, then start again with freshly read settings."""
        self.stop()
        await self.start()

    async def wait_idle(self) -> None:
        """Wait for start- and timer-started cycles that are still running."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    def _spawn_cycle(self, force: bool = False) -> asyncio.Task[CycleReport]:
        cycle = asyncio.create_task(self.run_cycle(force))
        self._inflight.add(cycle)
        cycle.add_done_callback(self._inflight.discard)
        return cycle

    async def _tick_loop(self, interval: int) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                # Cancelling the timer must not cancel a running cycle
                await asyncio.shield(self._spawn_cycle())
        except asyncio.CancelledError:
            logger.debug("Timer cancelled for %s", self.context.root)
            raise

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    async def run_cycle(self, force: bool = False) -> CycleReport:
        """
        Run one sync cycle (queued behind any cycle already running).

        Never raises: failures end in the ERROR state with one user-visible
        message.

        Args:
            force: Refresh and reconcile even if the remote did not move.

        Returns:
            CycleReport describing what happened.
        """
        async with self._lock:
            return await self._cycle(force)

    async def _cycle(self, force: bool) -> CycleReport:
        report = CycleReport(forced=force)
        cache = self.context.cache

        try:
            config = self._read_config()
            toggles = config.agentic

            self._set_state(SchedulerState.CHECKING)

            if not cache.is_present():
                self._set_state(SchedulerState.CLONING)
                await cache.clone()
                report.action = CycleAction.CLONED
                report.reconcile = await self._reconcile(toggles, notify=True)
                self._mark_updated()
            elif force:
                self._set_state(SchedulerState.INITIALIZING)
                await cache.ensure_ready()
                report.action = CycleAction.FORCED
                report.reconcile = await self._reconcile(toggles, notify=True)
                self._mark_updated()
            elif await cache.has_remote_changes():
                self._set_state(SchedulerState.UPDATING)
                outcome = await cache.refresh()
                if outcome == RefreshOutcome.UPDATED:
                    report.action = CycleAction.UPDATED
                    report.reconcile = await self._reconcile(toggles, notify=True)
                    self._mark_updated()
                else:
                    report.reconcile = await self._reconcile(toggles, notify=False)
            else:
                # Silent pass keeps the workspace and .gitignore in shape
                report.reconcile = await self._reconcile(toggles, notify=False)

            report.contribution = await self.context.contributor.check_and_contribute()
            self.last_error = None
            self._set_state(SchedulerState.IDLE)
        except Exception as e:
            self._fail(report, e, "Update failed")

        return report

    async def force_update(self) -> CycleReport:
        """
        Clone-or-refresh the cache and always reconcile.

        Independent of the timer, but queued behind a running cycle.
        """
        async with self._lock:
            report = CycleReport(forced=True, action=CycleAction.FORCED)
            cache = self.context.cache
            try:
                config = self._read_config()
                self._set_state(
                    SchedulerState.UPDATING if cache.is_present() else SchedulerState.CLONING
                )
                await cache.ensure_ready()
                report.reconcile = await self._reconcile(config.agentic, notify=True)
                self._mark_updated()
                self.last_error = None
                self._set_state(SchedulerState.IDLE)
                self.context.notifier.info("Force update completed!")
            except Exception as e:
                self._fail(report, e, "Force update failed")
            return report

    async def reconcile_now(self) -> ReconcileResult | None:
        """Reconcile with the current toggles without touching the cache."""
        async with self._lock:
            report = CycleReport()
            try:
                config = self._read_config()
                result = await self._reconcile(config.agentic, notify=True)
                self._set_state(SchedulerState.IDLE)
                return result
            except Exception as e:
                self._fail(report, e, "Sync failed")
                return None

    async def handle_config_change(self, sections: Iterable[str]) -> None:
        """
        React to changed configuration sections.

        `update` restarts the timer; `agentic`, `contribute` and `ignore_file`
        trigger a reconcile pass. Repository and cache changes need a new
        context and are handled by the registry.
        """
        changed = set(sections)
        if "update" in changed:
            await self.restart()
        elif changed & {"agentic", "contribute", "ignore_file"}:
            await self.reconcile_now()
