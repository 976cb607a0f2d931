"""Periodic re-sync with a single-flight guard and graceful shutdown.

Usage:
    scheduler = SyncScheduler(job, interval_minutes=120)
    scheduler.run_forever()  # until SIGINT/SIGTERM
"""

import signal
import sys
import threading
from typing import Any, Callable, Optional

from catalog_sync.errors import CatalogSyncError
from catalog_sync.logging_config import get_logger, log_sync_event

__all__ = ["SyncScheduler"]

logger = get_logger("scheduler")


class SyncScheduler:
    """Runs a sync job every ``interval_minutes``, never two at once.

    A trigger that fires while a run is still in flight is skipped and
    logged as ``run_skipped``. A failed run is logged and the next one
    happens on schedule.
    """

    def __init__(self, job: Callable[[], Any], interval_minutes: float):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.job = job
        self.interval_seconds = interval_minutes * 60
        self._stop_requested = threading.Event()
        self._run_lock = threading.Lock()
        self._original_sigint = None
        self._original_sigterm = None
        self._installed = False
        self.runs = 0
        self.skipped = 0
        self.failures = 0

    def install(self) -> "SyncScheduler":
        """Install SIGINT/SIGTERM handlers.

        Returns:
            Self for chaining
        """
        if self._installed:
            return self

        self._original_sigint = signal.getsignal(signal.SIGINT)
        self._original_sigterm = signal.getsignal(signal.SIGTERM)

        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        self._installed = True
        return self

    def uninstall(self) -> None:
        """Restore original signal handlers."""
        if not self._installed:
            return

        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)

        self._installed = False

    def _handle_signal(self, signum: int, frame) -> None:
        signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logger.warning(f"Received {signal_name}, stopping after the current run (repeat to force quit)")
        self._stop_requested.set()

        # On second signal, force exit
        signal.signal(signum, self._force_exit)

    def _force_exit(self, signum: int, frame) -> None:
        logger.error("Force quitting")
        sys.exit(1)

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    def stop(self) -> None:
        self._stop_requested.set()

    def run_once(self) -> bool:
        """Run the job unless a run is already in flight.

        Returns:
            True if the job was started, False if this trigger was skipped
        """
        if not self._run_lock.acquire(blocking=False):
            self.skipped += 1
            log_sync_event("run_skipped", {"message": "Previous sync still running, skipping this trigger"})
            return False

        try:
            self.runs += 1
            self.job()
        except CatalogSyncError as e:
            self.failures += 1
            logger.error(f"Scheduled sync failed: {e}")
        finally:
            self._run_lock.release()
        return True

    def run_forever(self, max_runs: Optional[int] = None) -> None:
        """Run now, then every interval, until stopped.

        Args:
            max_runs: Stop after this many triggers (default: no limit)
        """
        self.install()
        logger.info(f"Scheduler started, syncing every {self.interval_seconds / 60:g} minutes")
        triggers = 0
        try:
            while not self.stop_requested:
                self.run_once()
                triggers += 1
                if max_runs is not None and triggers >= max_runs:
                    break
                if self._stop_requested.wait(self.interval_seconds):
                    break
        finally:
            self.uninstall()
            logger.info(f"Scheduler stopped after {self.runs} runs ({self.failures} failed, {self.skipped} skipped)")
