"""Notification dispatch.

Turns change events into messages and hands them to every enabled sink.
Delivery problems are logged and swallowed here: a failed notification must
never stop the rest of a cycle or the snapshot save that follows it.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional, Protocol

from .detector import ChangeEvent
from .emailer import EmailSink
from .exceptions import NotificationError
from .notifier import DiscordSink
from .restock import format_timestamp

logger = logging.getLogger(__name__)


class Sink(Protocol):
    name: str

    @property
    def enabled(self) -> bool: ...

    def send(self, subject: str, body: str) -> None: ...


_FEED_LABELS = {
    "stock": "Stock",
    "weather": "Weather",
    "items": "Item",
}


def render_body(event: ChangeEvent) -> str:
    if event.feed == "restock":
        payload = event.payload or {}
        when = payload.get("LastRestock")
        if isinstance(when, (int, float)):
            when = format_timestamp(int(when))
        return f"{event.category} restock occurred at {when}.\nNext restock: {payload.get('countdown')}"

    label = _FEED_LABELS.get(event.feed, event.feed.capitalize())
    return f"{label} data has changed:\n{json.dumps(event.payload, indent=2, ensure_ascii=False, default=str)}"


class NotificationDispatcher:
    def __init__(self, sinks: Iterable[Sink]):
        self.sinks: List[Sink] = list(sinks)

    @property
    def active_sinks(self) -> List[Sink]:
        return [s for s in self.sinks if s.enabled]

    def notify(self, subject: str, body: str) -> bool:
        """Send one message to every enabled sink.

        Returns True if at least one sink accepted it.  Never raises.
        """
        sinks = self.active_sinks
        if not sinks:
            logger.warning("No notification sink enabled; dropping %r", subject)
            return False

        delivered = False
        for sink in sinks:
            try:
                sink.send(subject, body)
                delivered = True
            except NotificationError as e:
                logger.error("Error sending %s notification %r: %s", sink.name, subject, e)
            except Exception:
                logger.exception("Unexpected error in %s sink for %r", sink.name, subject)
        return delivered

    def dispatch(self, event: ChangeEvent) -> bool:
        return self.notify(event.subject, render_body(event))


def build_default_dispatcher(sinks: Optional[Iterable[Sink]] = None) -> NotificationDispatcher:
    if sinks is None:
        sinks = [EmailSink(), DiscordSink()]
    return NotificationDispatcher(sinks)


__all__ = ["Sink", "NotificationDispatcher", "render_body", "build_default_dispatcher"]
