"""
Grow a Garden change notifier package.

This package polls the stock, weather and item catalog feeds, computes the
shop restock schedule, emails (or posts to Discord) every change it sees and
remembers the last observed state across restarts.  See README.md for details.
"""

__all__ = [
    "config",
    "detector",
    "dispatcher",
    "emailer",
    "exceptions",
    "feeds",
    "main",
    "notifier",
    "orchestrator",
    "restock",
    "scheduler",
    "server",
    "snapshot",
    "utils",
]
