"""Exception hierarchy for the notifier service."""

from __future__ import annotations


class GardenNotifierError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(GardenNotifierError):
    """Raised at startup when the environment cannot run the service."""


class FetchError(GardenNotifierError):
    """One feed's data source was unreachable, timed out or returned junk."""

    def __init__(self, feed: str, message: str) -> None:
        super().__init__(f"{feed}: {message}")
        self.feed = feed


class NotificationError(GardenNotifierError):
    """A notification sink failed to deliver a message."""


class PersistenceError(GardenNotifierError):
    """The snapshot could not be written to storage."""


__all__ = [
    "GardenNotifierError",
    "ConfigError",
    "FetchError",
    "NotificationError",
    "PersistenceError",
]
