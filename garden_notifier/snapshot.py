"""Snapshot persistence for the change checker.

The snapshot holds the last successfully observed value of every feed and
is stored as a single pretty-printed JSON object::

    {"stock": ..., "weather": ..., "restock": ..., "items": ...}

A missing file means nothing has been observed yet.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from . import config
from .exceptions import PersistenceError
from .utils import atomic_write_json

logger = logging.getLogger(__name__)

FEED_NAMES = ("stock", "weather", "restock", "items")


@dataclass
class Snapshot:
    stock: Any = None
    weather: Any = None
    restock: Optional[Dict[str, Dict[str, Any]]] = None
    items: Any = None

    def get(self, feed: str) -> Any:
        if feed not in FEED_NAMES:
            raise KeyError(feed)
        return getattr(self, feed)

    def set(self, feed: str, value: Any) -> None:
        if feed not in FEED_NAMES:
            raise KeyError(feed)
        setattr(self, feed, value)

    def copy(self) -> "Snapshot":
        # Field values are replaced wholesale, never mutated, so a shallow copy is enough.
        return dataclasses.replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in FEED_NAMES}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(**{name: data.get(name) for name in FEED_NAMES})


class SnapshotStore:
    """Loads and saves the :class:`Snapshot` as a JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path if path is not None else config.SNAPSHOT_PATH)
        self._write_lock = threading.Lock()

    def load(self) -> Snapshot:
        """Return the persisted snapshot, or an empty one if there is none.

        An unreadable or corrupt file is logged and treated as empty; the
        next successful save replaces it.
        """
        if not self.path.exists():
            logger.info("No snapshot at %s; starting from an empty state.", self.path)
            return Snapshot()
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logger.exception("Error loading previous data from %s", self.path)
            return Snapshot()
        if not isinstance(data, dict):
            logger.error("Snapshot at %s is not a JSON object; ignoring it.", self.path)
            return Snapshot()
        return Snapshot.from_dict(data)

    def save(self, snapshot: Snapshot) -> None:
        """Atomically replace the persisted snapshot.

        Raises :class:`PersistenceError` if the file cannot be written.
        """
        with self._write_lock:
            try:
                atomic_write_json(self.path, snapshot.to_dict())
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(f"could not write snapshot to {self.path}: {e}") from e
        logger.debug("Snapshot saved to %s", self.path)


__all__ = ["FEED_NAMES", "Snapshot", "SnapshotStore"]
