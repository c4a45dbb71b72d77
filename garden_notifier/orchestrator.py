"""One poll-diff-notify cycle over all feeds.

All feeds are fetched concurrently, then handled one after another in a
fixed order: detect changes against the snapshot, notify, stage the new
value.  A feed that fails or times out keeps its previous value and the
cycle moves on.  The snapshot is saved once, after every feed was handled.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional

from . import config
from .detector import ChangeEvent, detect_changes
from .dispatcher import NotificationDispatcher
from .exceptions import FetchError, PersistenceError
from .feeds import Feed
from .snapshot import Snapshot, SnapshotStore

logger = logging.getLogger(__name__)


class CycleState(str, Enum):
    IDLE = "Idle"
    FETCHING_STOCK = "FetchingStock"
    FETCHING_WEATHER = "FetchingWeather"
    COMPUTING_RESTOCK = "ComputingRestock"
    FETCHING_ITEMS = "FetchingItems"
    PERSISTING = "Persisting"


FEED_STATES = (
    ("stock", CycleState.FETCHING_STOCK),
    ("weather", CycleState.FETCHING_WEATHER),
    ("restock", CycleState.COMPUTING_RESTOCK),
    ("items", CycleState.FETCHING_ITEMS),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    events: List[ChangeEvent] = field(default_factory=list)
    notifications_sent: int = 0
    failed_feeds: Dict[str, str] = field(default_factory=dict)
    persisted: bool = False

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "changes": [e.subject for e in self.events],
            "notifications": self.notifications_sent,
            "failed_feeds": dict(self.failed_feeds),
            "persisted": self.persisted,
        }


class CycleOrchestrator:
    """Owns the in-memory snapshot and runs cycles against it.

    Not safe for concurrent ``run_cycle`` calls; :class:`CycleScheduler`
    serializes them.
    """

    def __init__(
        self,
        feeds: Mapping[str, Feed],
        dispatcher: NotificationDispatcher,
        store: SnapshotStore,
        *,
        snapshot: Optional[Snapshot] = None,
        timeout: Optional[float] = None,
        subject_prefix: Optional[str] = None,
    ):
        self.feeds = dict(feeds)
        self.dispatcher = dispatcher
        self.store = store
        self.snapshot = snapshot if snapshot is not None else store.load()
        self.timeout = timeout if timeout is not None else config.FEED_TIMEOUT_SECONDS
        self.subject_prefix = subject_prefix
        self.state = CycleState.IDLE

    def _enter(self, state: CycleState) -> None:
        logger.debug("Cycle state %s -> %s", self.state.value, state.value)
        self.state = state

    def _submit_fetches(self, executor: ThreadPoolExecutor) -> Dict[str, Future]:
        futures: Dict[str, Future] = {}
        for name, _ in FEED_STATES:
            feed = self.feeds.get(name)
            if feed is not None:
                futures[name] = executor.submit(feed.fetch)
        return futures

    def _await(self, name: str, future: Optional[Future], deadline: float):
        if future is None:
            raise FetchError(name, "no adapter configured")
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FuturesTimeout as e:
            raise FetchError(name, f"timed out after {self.timeout:g}s") from e

    def _handle_feed(self, name: str, data, working: Snapshot, report: CycleReport) -> None:
        events = detect_changes(name, data, working, subject_prefix=self.subject_prefix)
        for event in events:
            report.events.append(event)
            if self.dispatcher.dispatch(event):
                report.notifications_sent += 1
        working.set(name, data)
        self.feeds[name].commit(data)
        if events:
            logger.info("%s: %d change(s) detected", name, len(events))

    def run_cycle(self) -> CycleReport:
        """Fetch, compare, notify and persist once; never raises for feed,
        notification or storage failures."""
        report = CycleReport(started_at=_utcnow())
        working = self.snapshot.copy()
        logger.info("Starting change check…")

        executor = ThreadPoolExecutor(max_workers=len(FEED_STATES), thread_name_prefix="feed-fetch")
        try:
            futures = self._submit_fetches(executor)
            deadline = time.monotonic() + self.timeout
            for name, state in FEED_STATES:
                self._enter(state)
                try:
                    data = self._await(name, futures.get(name), deadline)
                    self._handle_feed(name, data, working, report)
                except FetchError as e:
                    report.failed_feeds[name] = str(e)
                    logger.warning("Error fetching %s; keeping previous value: %s", name, e)
                except Exception as e:
                    report.failed_feeds[name] = repr(e)
                    logger.exception("Unexpected error processing %s feed; keeping previous value", name)
        finally:
            # Hung fetches are abandoned; their results are never read.
            executor.shutdown(wait=False)

        self._enter(CycleState.PERSISTING)
        self.snapshot = working
        try:
            self.store.save(working)
            report.persisted = True
        except PersistenceError as e:
            logger.error("Error saving previous data: %s", e)
        finally:
            self._enter(CycleState.IDLE)

        report.finished_at = _utcnow()
        if report.events:
            logger.info(
                "Change check done: %d change(s), %d notification(s) sent, %d feed(s) failed.",
                len(report.events), report.notifications_sent, len(report.failed_feeds),
            )
        else:
            logger.info("No changes detected this cycle (%d feed(s) failed).", len(report.failed_feeds))
        return report


__all__ = ["CycleState", "CycleReport", "CycleOrchestrator", "FEED_STATES"]
