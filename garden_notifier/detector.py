"""Change detection between freshly fetched feed data and the snapshot.

``stock``, ``weather`` and ``items`` are compared by value: both sides are
serialized canonically (sorted keys) so key order never matters and two
``None`` values are equal.  A first observation, i.e. a value where the
snapshot has ``None``, counts as a change.

``restock`` only reports categories whose ``LastRestock`` moved since the
previous observation.  Without a previous observation there is nothing to
compare against and no event is produced; ``countdown`` is never compared.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from . import config
from .restock import RESTOCK_CATEGORIES
from .snapshot import Snapshot

_FEED_TITLES = {
    "stock": "Stock",
    "weather": "Weather",
    "items": "Item",
}


@dataclass(frozen=True)
class ChangeEvent:
    feed: str
    subject: str
    payload: Any
    category: Optional[str] = None


def canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def values_equal(a: Any, b: Any) -> bool:
    return canonical(a) == canonical(b)


def _restock_events(new_data: Any, previous: Any, prefix: str) -> List[ChangeEvent]:
    if not isinstance(previous, dict) or not previous or not isinstance(new_data, dict):
        return []

    events: List[ChangeEvent] = []
    for category in RESTOCK_CATEGORIES:
        prev_entry = previous.get(category)
        new_entry = new_data.get(category)
        if not isinstance(prev_entry, dict) or not isinstance(new_entry, dict):
            continue
        if new_entry.get("LastRestock") != prev_entry.get("LastRestock"):
            events.append(
                ChangeEvent(
                    feed="restock",
                    subject=f"{prefix} {category} Restock Occurred",
                    payload=new_entry,
                    category=category,
                )
            )
    return events


def detect_changes(
    feed: str,
    new_data: Any,
    snapshot: Snapshot,
    *,
    subject_prefix: Optional[str] = None,
) -> List[ChangeEvent]:
    """Return the events *new_data* causes relative to *snapshot*."""
    prefix = subject_prefix if subject_prefix is not None else config.SUBJECT_PREFIX
    previous = snapshot.get(feed)

    if feed == "restock":
        return _restock_events(new_data, previous, prefix)

    if values_equal(new_data, previous):
        return []
    title = _FEED_TITLES[feed]
    return [ChangeEvent(feed=feed, subject=f"{prefix} {title} Data Updated", payload=new_data)]


__all__ = ["ChangeEvent", "canonical", "values_equal", "detect_changes"]
