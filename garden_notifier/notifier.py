"""Discord webhook notifier.

Posts change notifications to a Discord channel via webhook.  Messages are
plain text; bodies longer than Discord's content limit are truncated.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests

from . import config
from .exceptions import NotificationError
from .utils import HTTPError, get_http_session, retryable_request

logger = logging.getLogger(__name__)

DISCORD_CONTENT_LIMIT = 2000


@retryable_request
def _post(session: requests.Session, url: str, **kwargs) -> requests.Response:
    return session.post(url, **kwargs)


def build_content(subject: str, body: str, limit: int = DISCORD_CONTENT_LIMIT) -> str:
    head = f"**{subject}**\n"
    fence_open, fence_close = "```\n", "\n```"
    room = limit - len(head) - len(fence_open) - len(fence_close)
    if len(body) > room:
        body = body[: max(0, room - 1)] + "…"
    return f"{head}{fence_open}{body}{fence_close}"


class DiscordSink:
    """Delivers messages to a Discord webhook."""

    name = "discord"

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.webhook_url = webhook_url if webhook_url is not None else config.DISCORD_WEBHOOK_URL
        self._session = session

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def send(self, subject: str, body: str) -> None:
        if not self.webhook_url:
            raise NotificationError("Discord webhook URL is not configured.")

        session = self._session or get_http_session()
        try:
            logger.info("Sending Discord notification: %s", subject)
            _post(session, self.webhook_url, json={"content": build_content(subject, body)}, timeout=20)
        except (requests.RequestException, HTTPError) as e:
            raise NotificationError(f"Discord webhook failed: {e}") from e
        finally:
            if self._session is None:
                session.close()


__all__ = ["DiscordSink", "build_content", "DISCORD_CONTENT_LIMIT"]
