from __future__ import annotations

import logging
import signal
import threading

from . import config
from .dispatcher import build_default_dispatcher
from .exceptions import ConfigError
from .feeds import ItemCatalogFeed, build_default_feeds
from .orchestrator import CycleOrchestrator
from .scheduler import CycleScheduler
from .server import NotifierServer
from .snapshot import SnapshotStore


def setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main() -> None:
    """Initialise and run the change checker and its HTTP surface."""
    setup_logging()
    logger = logging.getLogger(__name__)
    try:
        config.validate()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        raise SystemExit(2)

    store = SnapshotStore()
    logger.info("Loading previous data from %s…", store.path)
    feeds = build_default_feeds()
    dispatcher = build_default_dispatcher()
    logger.info("Notification sinks: %s", ", ".join(s.name for s in dispatcher.active_sinks))

    orchestrator = CycleOrchestrator(feeds, dispatcher, store)
    scheduler = CycleScheduler(orchestrator)

    item_feed = feeds.get("items")
    server = NotifierServer(scheduler, item_feed if isinstance(item_feed, ItemCatalogFeed) else None)
    server.start()

    logger.info("Checking for changes every %s seconds.", scheduler.interval)
    scheduler.start()

    done = threading.Event()

    def _shutdown(signum, frame):
        logger.info("Received signal %s; shutting down.", signum)
        done.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
    done.wait()

    scheduler.stop(timeout=5)
    server.stop()


if __name__ == "__main__":
    main()
