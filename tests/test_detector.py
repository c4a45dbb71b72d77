"""
Tests for garden_notifier.detector — per-feed change rules.

Covers:
  - value comparison for stock/weather/items (key order, None, first observation)
  - restock gating on a previous observation and LastRestock-only comparison
"""

from __future__ import annotations

import pytest

from garden_notifier.detector import canonical, detect_changes, values_equal
from garden_notifier.snapshot import Snapshot

from conftest import restock_state

PREFIX = "Grow a Garden:"


def _detect(feed, new, snapshot):
    return detect_changes(feed, new, snapshot, subject_prefix=PREFIX)


class TestValueComparison:
    def test_key_order_is_irrelevant(self):
        a = {"seeds": {"Carrot": 5, "Tomato": 2}, "gear": []}
        b = {"gear": [], "seeds": {"Tomato": 2, "Carrot": 5}}
        assert values_equal(a, b)
        assert canonical(a) == canonical(b)

    def test_two_nones_are_equal(self):
        assert values_equal(None, None)

    def test_list_order_matters(self):
        assert not values_equal([1, 2], [2, 1])

    @pytest.mark.parametrize("feed", ["stock", "weather", "items"])
    def test_unchanged_value_produces_nothing(self, feed):
        snap = Snapshot()
        snap.set(feed, {"x": 1, "y": [1, 2]})
        assert _detect(feed, {"y": [1, 2], "x": 1}, snap) == []

    @pytest.mark.parametrize(
        "feed,subject",
        [
            ("stock", "Grow a Garden: Stock Data Updated"),
            ("weather", "Grow a Garden: Weather Data Updated"),
            ("items", "Grow a Garden: Item Data Updated"),
        ],
    )
    def test_changed_value_produces_one_event(self, feed, subject):
        snap = Snapshot()
        snap.set(feed, {"x": 1})
        events = _detect(feed, {"x": 2}, snap)
        assert len(events) == 1
        assert events[0].feed == feed
        assert events[0].subject == subject
        assert events[0].payload == {"x": 2}

    def test_first_observation_counts_as_change(self):
        events = _detect("weather", {"current": "Rain"}, Snapshot())
        assert len(events) == 1

    def test_none_after_none_is_not_a_change(self):
        assert _detect("items", None, Snapshot()) == []

    def test_default_prefix_comes_from_config(self, monkeypatch):
        from garden_notifier import config

        monkeypatch.setattr(config, "SUBJECT_PREFIX", "[GAG]")
        events = detect_changes("stock", {"x": 1}, Snapshot())
        assert events[0].subject == "[GAG] Stock Data Updated"


class TestRestock:
    def test_no_previous_restock_is_baseline_only(self):
        assert _detect("restock", restock_state(egg=2000), Snapshot()) == []

    def test_single_category_change(self):
        snap = Snapshot(restock=restock_state(egg=1000))
        events = _detect("restock", restock_state(egg=2800), snap)
        assert len(events) == 1
        event = events[0]
        assert event.category == "egg"
        assert "egg" in event.subject
        assert event.subject == "Grow a Garden: egg Restock Occurred"
        assert event.payload["LastRestock"] == 2800

    def test_countdown_change_alone_is_ignored(self):
        snap = Snapshot(restock=restock_state())
        new = restock_state()
        for entry in new.values():
            entry["countdown"] = "01m 00s"
        assert _detect("restock", new, snap) == []

    def test_multiple_categories_reported_in_fixed_order(self):
        snap = Snapshot(restock=restock_state())
        events = _detect("restock", restock_state(SwarmEvent=5000, gear=1300, egg=2800), snap)
        assert [e.category for e in events] == ["egg", "gear", "SwarmEvent"]

    def test_category_missing_from_previous_is_baseline(self):
        previous = restock_state()
        del previous["cosmetic"]
        snap = Snapshot(restock=previous)
        events = _detect("restock", restock_state(cosmetic=9999), snap)
        assert events == []

    def test_category_missing_from_new_data_is_skipped(self):
        snap = Snapshot(restock=restock_state())
        new = restock_state(egg=2800)
        del new["gear"]
        events = _detect("restock", new, snap)
        assert [e.category for e in events] == ["egg"]
