"""Background purge loop: one sweep at startup, then one per interval."""
from __future__ import annotations
import asyncio
import enum
import logging
import threading
import time
from typing import Optional, TYPE_CHECKING

from .engine import PurgeConfigError, StatsReporter, purge_stale_files, validate_purge_settings
from .models import PurgeReport
from ..metrics import publish_repo_stats

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger("pkgcache.purge.scheduler")


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    STARTUP_SWEEP = "startup_sweep"
    STEADY_STATE = "steady_state"
    STOPPED = "stopped"


class PurgeScheduler:
    def __init__(self, settings: Settings, interval: Optional[float] = None,
                 reporter: StatsReporter = publish_repo_stats):
        self._settings = settings
        self._interval = interval if interval is not None else settings.purge_interval_hours * 3600
        self._reporter = reporter
        self._task: asyncio.Task[None] | None = None
        # Serializes sweeps from the loop and on-demand triggers.
        self._sweep_lock = threading.Lock()
        self.state = SchedulerState.IDLE
        self.sweeps_completed = 0
        self.last_reports: dict[str, PurgeReport] = {}

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_sweep(self) -> list[PurgeReport]:
        """Run one pass per configured repository, strictly one after another."""
        reports: list[PurgeReport] = []
        with self._sweep_lock:
            for repo_name in self._settings.repo_names:
                try:
                    report = purge_stale_files(
                        self._settings.cache_dir,
                        self._settings.purge_files_after,
                        self._settings.keep_files,
                        repo_name,
                        reporter=self._reporter,
                    )
                except PurgeConfigError:
                    raise
                except Exception:
                    logger.exception("Purge of repo %s failed", repo_name)
                    continue
                self.last_reports[repo_name] = report
                reports.append(report)
            self.sweeps_completed += 1
        return reports

    def start(self):
        """Validate settings and launch the loop on the running event loop."""
        if self.running:
            return
        validate_purge_settings(self._settings.purge_files_after, self._settings.keep_files)
        self.state = SchedulerState.STARTUP_SWEEP
        self._task = asyncio.create_task(self._run(), name="pkgcache-purge")
        self._task.add_done_callback(self._on_task_done)
        logger.info(
            "Purge scheduler started (interval=%ss, keep_files=%d, purge_files_after=%ds, repos=%s)",
            self._interval, self._settings.keep_files, self._settings.purge_files_after,
            self._settings.repo_names,
        )

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except PurgeConfigError:
                # already reported by _on_task_done
                pass
            self._task = None
        self.state = SchedulerState.STOPPED

    def _on_task_done(self, task: asyncio.Task[None]):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.state = SchedulerState.STOPPED
            logger.critical("Purge scheduler stopped: %s", exc, exc_info=exc)

    async def _run(self):
        started = time.monotonic()
        await asyncio.to_thread(self.run_sweep)

        self.state = SchedulerState.STEADY_STATE
        ticks = 0
        while True:
            # Fixed grid from start; ticks missed during a long sweep are dropped.
            elapsed = time.monotonic() - started
            ticks = max(ticks + 1, int(elapsed // self._interval) + 1)
            await asyncio.sleep(max(0.0, started + ticks * self._interval - time.monotonic()))
            await asyncio.to_thread(self.run_sweep)
