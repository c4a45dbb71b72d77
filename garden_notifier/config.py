"""Configuration loader.

Reads environment variables and `.env` to configure the service.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError

# Load variables from a .env file if present (project root).
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")

logger = logging.getLogger(__name__)


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


def _get_list(name: str) -> list[str]:
    raw = _get_env(name, "") or ""
    return [s.strip() for s in raw.split(",") if s.strip()]


def _parse_intervals(raw: str) -> Dict[str, int]:
    """Parse ``egg=1800,gear=300`` into a mapping; bad pairs are skipped."""
    out: Dict[str, int] = {}
    for pair in raw.split(","):
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            continue
        try:
            out[name.strip()] = int(value)
        except ValueError:
            logger.warning("Ignoring bad RESTOCK_INTERVALS entry %r", pair)
    return out


# ---- Core polling config -----------------------------------------------------

# Seconds between scheduled change checks (the first one runs at startup).
POLL_INTERVAL_SECONDS: int = _parse_int(_get_env("POLL_INTERVAL_SECONDS"), 300)

# Upper bound for a single feed fetch; a timed-out fetch counts as failed.
FEED_TIMEOUT_SECONDS: float = _parse_float(_get_env("FEED_TIMEOUT_SECONDS"), 30.0)

# Logging level: DEBUG, INFO, WARNING, ERROR.
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO")

# ---- Feeds -------------------------------------------------------------------

STOCK_FEED_URL: Optional[str] = _get_env("STOCK_FEED_URL")
WEATHER_FEED_URL: Optional[str] = _get_env("WEATHER_FEED_URL")
ITEMS_FEED_URL: Optional[str] = _get_env("ITEMS_FEED_URL")

# Per-category overrides of the restock period, in seconds.
RESTOCK_INTERVALS: Dict[str, int] = _parse_intervals(_get_env("RESTOCK_INTERVALS", "") or "")

# ---- Storage -----------------------------------------------------------------

# Last-known state of every feed, rewritten once per cycle.
SNAPSHOT_PATH: str = _get_env("SNAPSHOT_PATH", "PreviousData.json")

# Raw item catalog as last fetched; served by /api/items.
ITEMS_CACHE_PATH: str = _get_env("ITEMS_CACHE_PATH", "Database.json")

# ---- Notifications -----------------------------------------------------------

SUBJECT_PREFIX: str = _get_env("SUBJECT_PREFIX", "Grow a Garden:")

# Discord webhook URL. Optional second sink next to email.
DISCORD_WEBHOOK_URL: Optional[str] = _get_env("DISCORD_WEBHOOK_URL")

EMAIL_ENABLED: bool = _parse_bool(_get_env("EMAIL_ENABLED", "true"), True)
EMAIL_SMTP_HOST: str = _get_env("EMAIL_SMTP_HOST", "smtp.gmail.com")
EMAIL_SMTP_PORT: int = _parse_int(_get_env("EMAIL_SMTP_PORT"), 587)  # 587 (TLS) or 465 (SSL)
EMAIL_USE_TLS: bool = _parse_bool(_get_env("EMAIL_USE_TLS", "true"), True)
EMAIL_USERNAME: str | None = _get_env("EMAIL_USERNAME")
EMAIL_PASSWORD: str | None = _get_env("EMAIL_PASSWORD")  # app password if using Gmail
EMAIL_FROM: str | None = _get_env("EMAIL_FROM") or EMAIL_USERNAME
EMAIL_TO: List[str] = _get_list("EMAIL_TO")  # comma-separated

# ---- HTTP surface ------------------------------------------------------------

HTTP_HOST: str = _get_env("HTTP_HOST", "0.0.0.0")
PORT: int = _parse_int(_get_env("PORT"), 3000)

# ---- Validation --------------------------------------------------------------


def _email_configured() -> bool:
    return bool(EMAIL_ENABLED and EMAIL_USERNAME and EMAIL_PASSWORD and EMAIL_FROM and EMAIL_TO)


def validate() -> None:
    """Validate required configuration parameters."""
    if not (_email_configured() or DISCORD_WEBHOOK_URL):
        raise ConfigError(
            "No notification sink configured. Set EMAIL_USERNAME, EMAIL_PASSWORD "
            "and EMAIL_TO, or DISCORD_WEBHOOK_URL. See .env.example for details."
        )
    if POLL_INTERVAL_SECONDS <= 0:
        raise ConfigError("POLL_INTERVAL_SECONDS must be positive")
    if FEED_TIMEOUT_SECONDS <= 0:
        raise ConfigError("FEED_TIMEOUT_SECONDS must be positive")
    for name, seconds in RESTOCK_INTERVALS.items():
        if seconds <= 0:
            raise ConfigError(f"RESTOCK_INTERVALS entry for {name} must be positive")
    for name in ("STOCK_FEED_URL", "WEATHER_FEED_URL", "ITEMS_FEED_URL"):
        if not globals()[name]:
            logger.warning("%s is not set; that feed will be skipped every cycle.", name)


__all__ = [
    # Polling
    "POLL_INTERVAL_SECONDS",
    "FEED_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    # Feeds
    "STOCK_FEED_URL",
    "WEATHER_FEED_URL",
    "ITEMS_FEED_URL",
    "RESTOCK_INTERVALS",
    # Storage
    "SNAPSHOT_PATH",
    "ITEMS_CACHE_PATH",
    # Notifications
    "SUBJECT_PREFIX",
    "DISCORD_WEBHOOK_URL",
    "EMAIL_ENABLED", "EMAIL_SMTP_HOST", "EMAIL_SMTP_PORT", "EMAIL_USE_TLS",
    "EMAIL_USERNAME", "EMAIL_PASSWORD", "EMAIL_FROM", "EMAIL_TO",
    # HTTP
    "HTTP_HOST",
    "PORT",
    # Helpers
    "validate",
]
