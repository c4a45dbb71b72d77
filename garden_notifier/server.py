"""HTTP surface for manual checks and read-only data.

Endpoints:
  /, /health            liveness message
  /api/force-check      run one change check now and wait for it
  /api/items            last fetched item catalog, verbatim
  /api/stock|weather|restock
                        last observed value of that feed
  /status               scheduler and last-cycle summary
"""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import urlparse

from . import config
from .feeds import ItemCatalogFeed
from .scheduler import CycleScheduler

logger = logging.getLogger(__name__)

_SNAPSHOT_ROUTES = {
    "/api/stock": "stock",
    "/api/weather": "weather",
    "/api/restock": "restock",
}


class NotifierRequestHandler(BaseHTTPRequestHandler):
    """Routes requests to the scheduler and the item cache.

    ``server.scheduler`` and ``server.item_feed`` are attached by
    :class:`NotifierServer`.
    """

    server_version = "GardenNotifier/1.0"

    def log_message(self, format, *args):
        """Override to use Python logging instead of stderr."""
        logger.info("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        try:
            path = urlparse(self.path).path.rstrip("/") or "/"

            if path in ("/", "/health"):
                self._send_json(200, {"message": "Grow a Garden Notifier is running"})
            elif path == "/api/force-check":
                self._force_check()
            elif path == "/api/items":
                self._send_items()
            elif path in _SNAPSHOT_ROUTES:
                self._send_snapshot_value(_SNAPSHOT_ROUTES[path])
            elif path == "/status":
                self._send_status()
            else:
                self._send_json(404, {"error": "Not found"})

        except Exception as e:
            logger.exception("Error handling request")
            self._send_json(500, {"error": f"Server error: {e}"})

    def do_POST(self):
        if urlparse(self.path).path.rstrip("/") == "/api/force-check":
            try:
                self._force_check()
            except Exception as e:
                logger.exception("Error handling request")
                self._send_json(500, {"error": f"Server error: {e}"})
        else:
            self._send_json(404, {"error": "Not found"})

    def _force_check(self) -> None:
        scheduler: CycleScheduler = self.server.scheduler
        logger.info("Manual change check requested")
        report = scheduler.trigger()
        if report is None:
            self._send_json(500, {"error": "Change check failed"})
            return
        self._send_json(
            200,
            {
                "message": "Change check triggered",
                "notifications": report.notifications_sent,
                "failed_feeds": sorted(report.failed_feeds),
                "persisted": report.persisted,
            },
        )

    def _send_items(self) -> None:
        item_feed: Optional[ItemCatalogFeed] = self.server.item_feed
        data = item_feed.load_cached() if item_feed is not None else None
        if data is None:
            self._send_json(404, {"error": "Item data not available yet"})
        else:
            self._send_json(200, data)

    def _send_snapshot_value(self, feed: str) -> None:
        value = self.server.scheduler.orchestrator.snapshot.get(feed)
        if value is None:
            self._send_json(404, {"error": f"{feed} data not available yet"})
        else:
            self._send_json(200, value)

    def _send_status(self) -> None:
        scheduler: CycleScheduler = self.server.scheduler
        last = scheduler.last_report
        status = {
            "status": "running",
            "cycle_running": scheduler.cycle_running,
            "poll_interval_seconds": scheduler.interval,
            "last_cycle": last.to_dict() if last else None,
        }
        self._send_json(200, status)

    def _send_json(self, code: int, payload: Any) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class NotifierServer:
    """Serves :class:`NotifierRequestHandler` from a daemon thread."""

    def __init__(
        self,
        scheduler: CycleScheduler,
        item_feed: Optional[ItemCatalogFeed] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self.item_feed = item_feed
        self.host = host if host is not None else config.HTTP_HOST
        self.port = port if port is not None else config.PORT
        self.server: Optional[ThreadingHTTPServer] = None
        self.server_thread: Optional[threading.Thread] = None
        self.running = False

    def start(self) -> str:
        """Start the server and return the base URL."""
        if self.running:
            return self.base_url

        self.server = ThreadingHTTPServer((self.host, self.port), NotifierRequestHandler)
        self.server.daemon_threads = True
        self.server.scheduler = self.scheduler
        self.server.item_feed = self.item_feed
        # Port 0 asks the OS for a free port.
        self.port = self.server.server_address[1]
        self.server_thread = threading.Thread(target=self.server.serve_forever, name="http", daemon=True)
        self.server_thread.start()
        self.running = True
        logger.info("Server running on %s", self.base_url)
        return self.base_url

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def stop(self) -> None:
        """Stop the server."""
        if self.server and self.running:
            self.server.shutdown()
            self.server.server_close()
            self.running = False
            logger.info("Server stopped")


__all__ = ["NotifierRequestHandler", "NotifierServer"]
