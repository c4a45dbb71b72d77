"""
Tests for garden_notifier.restock — the computed restock schedule.
"""

from __future__ import annotations

from garden_notifier.restock import (
    DEFAULT_INTERVALS,
    RESTOCK_CATEGORIES,
    calculate_restock_times,
    format_countdown,
    format_timestamp,
)

# Divisible by every default period (4h is the longest).
_BASE = 14400 * 118055


def test_all_categories_present():
    data = calculate_restock_times(_BASE + 65)
    assert list(data) == list(RESTOCK_CATEGORIES)
    for entry in data.values():
        assert set(entry) == {"LastRestock", "countdown"}


def test_last_restock_is_most_recent_boundary():
    now = _BASE + 65
    data = calculate_restock_times(now)
    for category, period in DEFAULT_INTERVALS.items():
        last = data[category]["LastRestock"]
        assert last % period == 0
        assert last <= now < last + period


def test_countdowns():
    data = calculate_restock_times(_BASE + 65)
    assert data["egg"]["countdown"] == "28m 55s"
    assert data["gear"]["countdown"] == "03m 55s"
    assert data["cosmetic"]["countdown"] == "3h 58m 55s"


def test_last_restock_only_moves_on_boundary():
    before = calculate_restock_times(_BASE + 1790)
    after = calculate_restock_times(_BASE + 1800)
    assert before["egg"]["LastRestock"] == _BASE
    assert after["egg"]["LastRestock"] == _BASE + 1800
    # countdown changes every second but LastRestock does not
    assert calculate_restock_times(_BASE + 10)["egg"]["LastRestock"] == _BASE


def test_interval_override():
    data = calculate_restock_times(_BASE + 650, {"gear": 600})
    assert data["gear"]["LastRestock"] == _BASE + 600
    assert data["seeds"]["LastRestock"] == _BASE + 600  # 5 minute default


def test_format_countdown():
    assert format_countdown(0) == "00m 00s"
    assert format_countdown(3723) == "1h 02m 03s"
    assert format_countdown(-5) == "00m 00s"


def test_format_timestamp_is_utc_iso():
    assert format_timestamp(0) == "1970-01-01T00:00:00+00:00"
