"""Cycle scheduling.

Runs a change check right away, then every ``interval`` seconds, and on
demand through :meth:`CycleScheduler.trigger`.

Only one cycle runs at a time.  A request that arrives while a cycle is in
flight waits for the *next* cycle, and all such requests share that one
pending cycle, so there is never more than one cycle queued.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from . import config
from .orchestrator import CycleOrchestrator, CycleReport

logger = logging.getLogger(__name__)

_KEEP_REPORTS = 8


class CycleScheduler:
    def __init__(self, orchestrator: CycleOrchestrator, interval: Optional[float] = None):
        self.orchestrator = orchestrator
        self.interval = float(interval if interval is not None else config.POLL_INTERVAL_SECONDS)

        self._cond = threading.Condition()
        self._running = False
        self._started = 0  # cycles started
        self._finished = 0  # cycles finished
        self._reports: Dict[int, Optional[CycleReport]] = {}

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---- cycle execution ---------------------------------------------------

    @property
    def cycle_running(self) -> bool:
        with self._cond:
            return self._running

    @property
    def last_report(self) -> Optional[CycleReport]:
        with self._cond:
            return self._reports.get(self._finished)

    def _execute(self, seq: int) -> None:
        report: Optional[CycleReport] = None
        try:
            report = self.orchestrator.run_cycle()
        except Exception:
            logger.exception("Unexpected error during change check #%d", seq)
        finally:
            with self._cond:
                self._reports[seq] = report
                for old in [k for k in self._reports if k <= seq - _KEEP_REPORTS]:
                    del self._reports[old]
                self._finished = seq
                self._running = False
                self._cond.notify_all()

    def trigger(self) -> Optional[CycleReport]:
        """Run a cycle that starts after this call and wait for it.

        Returns that cycle's report, or None if the cycle itself crashed.
        """
        with self._cond:
            target = self._started + 1
            while self._finished < target:
                if not self._running and self._started < target:
                    self._running = True
                    self._started = target
                    self._cond.release()
                    try:
                        self._execute(target)
                    finally:
                        self._cond.acquire()
                else:
                    self._cond.wait()
            return self._reports.get(target)

    # ---- periodic loop -----------------------------------------------------

    def _loop(self) -> None:
        logger.info("Scheduler started (interval=%ss)", self.interval)
        while not self._stop.is_set():
            self.trigger()
            if self._stop.wait(self.interval):
                break
        logger.info("Scheduler stopped")

    def start(self) -> None:
        """Run the first cycle now and keep polling in a background thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="cycle-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the periodic loop; a cycle already running is allowed to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def join(self) -> None:
        if self._thread is not None:
            self._thread.join()


__all__ = ["CycleScheduler"]
