"""
Tests for garden_notifier.server — the manual trigger and read endpoints,
served on an ephemeral local port.
"""

from __future__ import annotations

import json

import pytest
import requests

from garden_notifier.feeds import ItemCatalogFeed
from garden_notifier.scheduler import CycleScheduler
from garden_notifier.server import NotifierServer


@pytest.fixture
def item_feed(tmp_path):
    return ItemCatalogFeed("http://feeds.invalid/items", cache_path=tmp_path / "Database.json")


@pytest.fixture
def running(feeds, make_orchestrator, item_feed):
    scheduler = CycleScheduler(make_orchestrator(feeds), interval=3600)
    server = NotifierServer(scheduler, item_feed, host="127.0.0.1", port=0)
    base_url = server.start()
    yield base_url, scheduler
    server.stop()


def test_root_reports_running(running):
    base_url, _ = running
    resp = requests.get(base_url + "/", timeout=5)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Grow a Garden Notifier is running"}


def test_force_check_runs_a_cycle(running):
    base_url, scheduler = running
    resp = requests.get(base_url + "/api/force-check", timeout=10)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Change check triggered"
    assert body["notifications"] == 3
    assert body["failed_feeds"] == []
    assert body["persisted"] is True
    assert scheduler.last_report is not None


def test_force_check_accepts_post(running):
    base_url, _ = running
    resp = requests.post(base_url + "/api/force-check", timeout=10)
    assert resp.status_code == 200


def test_items_not_found_before_first_fetch(running):
    base_url, _ = running
    resp = requests.get(base_url + "/api/items", timeout=5)
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_items_served_verbatim_from_cache(running, item_feed):
    base_url, _ = running
    catalog = {"Carrot": {"rarity": "Common", "price": 10}, "Mango": {"rarity": "Legendary"}}
    item_feed.cache_path.write_text(json.dumps(catalog), encoding="utf-8")

    resp = requests.get(base_url + "/api/items", timeout=5)
    assert resp.status_code == 200
    assert resp.json() == catalog


def test_snapshot_endpoints_follow_cycles(running, feeds):
    base_url, _ = running
    assert requests.get(base_url + "/api/weather", timeout=5).status_code == 404

    requests.get(base_url + "/api/force-check", timeout=10)

    resp = requests.get(base_url + "/api/weather", timeout=5)
    assert resp.status_code == 200
    assert resp.json() == feeds["weather"].value
    assert requests.get(base_url + "/api/restock", timeout=5).json()["egg"]["LastRestock"] == 1000


def test_status_includes_last_cycle(running):
    base_url, _ = running
    before = requests.get(base_url + "/status", timeout=5).json()
    assert before["last_cycle"] is None
    assert before["poll_interval_seconds"] == 3600

    requests.get(base_url + "/api/force-check", timeout=10)
    after = requests.get(base_url + "/status", timeout=5).json()
    assert after["last_cycle"]["notifications"] == 3
    assert after["cycle_running"] is False


def test_unknown_path_is_404(running):
    base_url, _ = running
    assert requests.get(base_url + "/nope", timeout=5).status_code == 404
