"""
Shared pytest fixtures for the garden notifier test suite.

Provides:
  - ``FakeFeed``: a scripted feed whose value or error can change between cycles.
  - ``RecordingSink``: a notification sink that remembers what it was sent.
  - ``store``: a ``SnapshotStore`` writing into the test's tmp directory.
"""

from __future__ import annotations

import threading
from typing import Any, List, Optional, Tuple

import pytest

from garden_notifier.dispatcher import NotificationDispatcher
from garden_notifier.exceptions import NotificationError
from garden_notifier.feeds import Feed
from garden_notifier.orchestrator import CycleOrchestrator
from garden_notifier.snapshot import Snapshot, SnapshotStore


class FakeFeed(Feed):
    def __init__(
        self,
        name: str,
        value: Any = None,
        error: Optional[BaseException] = None,
        gate: Optional[threading.Event] = None,
    ):
        self.name = name
        self.value = value
        self.error = error
        self.gate = gate
        self.calls = 0

    def fetch(self) -> Any:
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(10)
        if self.error is not None:
            raise self.error
        return self.value


class RecordingSink:
    name = "recording"

    def __init__(self, fail: bool = False, enabled: bool = True):
        self.fail = fail
        self._enabled = enabled
        self.messages: List[Tuple[str, str]] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def send(self, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("sink is down")
        self.messages.append((subject, body))

    @property
    def subjects(self) -> List[str]:
        return [s for s, _ in self.messages]


def restock_state(**last_restock: int) -> dict:
    """Restock data for all five categories; overrides per category by keyword."""
    base = {"egg": 1000, "gear": 1000, "seeds": 1000, "cosmetic": 1000, "SwarmEvent": 1000}
    base.update(last_restock)
    return {cat: {"LastRestock": ts, "countdown": "05m 00s"} for cat, ts in base.items()}


@pytest.fixture
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "PreviousData.json")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def feeds() -> dict:
    return {
        "stock": FakeFeed("stock", {"seeds": [{"name": "Carrot", "qty": 5}]}),
        "weather": FakeFeed("weather", {"current": "Rain", "ends_in": 120}),
        "restock": FakeFeed("restock", restock_state()),
        "items": FakeFeed("items", [{"name": "Carrot", "rarity": "Common"}]),
    }


@pytest.fixture
def make_orchestrator(store, sink):
    def _make(feeds: dict, snapshot: Optional[Snapshot] = None, **kwargs) -> CycleOrchestrator:
        kwargs.setdefault("timeout", 5)
        kwargs.setdefault("subject_prefix", "Grow a Garden:")
        return CycleOrchestrator(
            feeds,
            NotificationDispatcher([sink]),
            store,
            snapshot=snapshot,
            **kwargs,
        )

    return _make
