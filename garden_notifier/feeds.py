"""Feed adapters.

Every feed exposes the same contract, ``fetch()``, which returns the feed's
current data or raises :class:`~garden_notifier.exceptions.FetchError`.
The HTTP feeds return the provider's JSON verbatim; interpreting it is the
consumer's business.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import requests

from . import config
from .exceptions import FetchError
from .restock import calculate_restock_times
from .utils import HTTPError, atomic_write_json, get_http_session, retryable_request

logger = logging.getLogger(__name__)


def _session_get(session: requests.Session, url: str, **kwargs: dict) -> requests.Response:
    return session.get(url, **kwargs)


class Feed:
    """Base class for a single data source."""

    name: str = ""

    def fetch(self) -> Any:
        raise NotImplementedError

    def commit(self, data: Any) -> None:
        """Called by the orchestrator once *data* has been accepted for a cycle."""


class HttpJsonFeed(Feed):
    """Fetch a JSON document from a fixed URL."""

    def __init__(
        self,
        name: str,
        url: Optional[str],
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.name = name
        self.url = url
        self.timeout = timeout if timeout is not None else config.FEED_TIMEOUT_SECONDS
        self._session = session
        # No retry may start after the orchestrator has given up on this fetch.
        self._get = retryable_request(_session_get, max_delay=self.timeout)

    def fetch(self) -> Any:
        if not self.url:
            raise FetchError(self.name, "feed URL is not configured")

        session = self._session or get_http_session()
        try:
            resp = self._get(session, self.url, timeout=self.timeout)
            data = resp.json()
        except (requests.RequestException, HTTPError) as e:
            raise FetchError(self.name, f"request to {self.url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(self.name, f"invalid JSON from {self.url}: {e}") from e
        finally:
            if self._session is None:
                session.close()

        logger.debug("Fetched %s feed from %s", self.name, self.url)
        return data


class ItemCatalogFeed(HttpJsonFeed):
    """Item catalog feed that keeps the last fetched catalog on disk."""

    def __init__(
        self,
        url: Optional[str],
        cache_path: str | Path | None = None,
        **kwargs: Any,
    ):
        super().__init__("items", url, **kwargs)
        self.cache_path = Path(cache_path if cache_path is not None else config.ITEMS_CACHE_PATH)

    def commit(self, data: Any) -> None:
        """Write the accepted catalog to the cache file."""
        try:
            atomic_write_json(self.cache_path, data)
        except (OSError, TypeError, ValueError):
            # The catalog is still usable for change detection this cycle.
            logger.exception("Could not write item cache %s", self.cache_path)

    def load_cached(self) -> Any:
        """Return the last catalog written by :meth:`commit`, or None."""
        if not self.cache_path.exists():
            return None
        try:
            with self.cache_path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError):
            logger.exception("Could not read item cache %s", self.cache_path)
            return None


class RestockFeed(Feed):
    """Restock schedule computed locally from the clock."""

    name = "restock"

    def __init__(
        self,
        intervals: Optional[Mapping[str, int]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.intervals = dict(intervals if intervals is not None else config.RESTOCK_INTERVALS)
        self._clock = clock

    def fetch(self) -> Any:
        try:
            return calculate_restock_times(self._clock(), self.intervals)
        except (KeyError, ValueError, ZeroDivisionError) as e:
            raise FetchError(self.name, f"could not compute restock times: {e}") from e


def build_default_feeds(session: Optional[requests.Session] = None) -> dict[str, Feed]:
    """Return the four feeds keyed by name, configured from the environment."""
    return {
        "stock": HttpJsonFeed("stock", config.STOCK_FEED_URL, session=session),
        "weather": HttpJsonFeed("weather", config.WEATHER_FEED_URL, session=session),
        "restock": RestockFeed(),
        "items": ItemCatalogFeed(config.ITEMS_FEED_URL, session=session),
    }


__all__ = ["Feed", "HttpJsonFeed", "ItemCatalogFeed", "RestockFeed", "build_default_feeds"]
