"""Restock schedule calculator.

Shops in the game restock on fixed periods aligned to the Unix epoch, so
the time of the last restock and the time left until the next one can be
computed from the clock alone.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

RESTOCK_CATEGORIES = ("egg", "gear", "seeds", "cosmetic", "SwarmEvent")

DEFAULT_INTERVALS: Dict[str, int] = {
    "egg": 30 * 60,
    "gear": 5 * 60,
    "seeds": 5 * 60,
    "cosmetic": 4 * 60 * 60,
    "SwarmEvent": 60 * 60,
}


def format_countdown(seconds: int) -> str:
    """Render a duration as ``1h 02m 03s`` (hours omitted when zero)."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes:02d}m {secs:02d}s"


def format_timestamp(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat()


def calculate_restock_times(
    now: Optional[float] = None,
    intervals: Optional[Mapping[str, int]] = None,
) -> Dict[str, Dict[str, object]]:
    """Return ``{category: {"LastRestock": epoch_s, "countdown": text}}``.

    *intervals* overrides the period (seconds) of individual categories.
    """
    if now is None:
        now = time.time()
    periods = dict(DEFAULT_INTERVALS)
    if intervals:
        periods.update(intervals)

    current = int(now)
    result: Dict[str, Dict[str, object]] = {}
    for category in RESTOCK_CATEGORIES:
        period = int(periods[category])
        last = current - (current % period)
        result[category] = {
            "LastRestock": last,
            "countdown": format_countdown(last + period - current),
        }
    return result


__all__ = [
    "RESTOCK_CATEGORIES",
    "DEFAULT_INTERVALS",
    "calculate_restock_times",
    "format_countdown",
    "format_timestamp",
]
