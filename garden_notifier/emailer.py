"""Email notifier via SMTP.

Sends change notifications to one or more recipients using SMTP.
Supports STARTTLS (587) or SSL (465).
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Sequence

from . import config
from .exceptions import NotificationError

logger = logging.getLogger(__name__)


class EmailSink:
    """Delivers plain-text messages over SMTP."""

    name = "email"

    def __init__(
        self,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        use_tls: Optional[bool] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        recipients: Optional[Sequence[str]] = None,
        enabled: Optional[bool] = None,
        timeout: float = 20,
    ):
        self.host = host if host is not None else config.EMAIL_SMTP_HOST
        self.port = int(port if port is not None else config.EMAIL_SMTP_PORT)
        self.use_tls = use_tls if use_tls is not None else config.EMAIL_USE_TLS
        self.username = username if username is not None else config.EMAIL_USERNAME
        self.password = password if password is not None else config.EMAIL_PASSWORD
        self.sender = sender if sender is not None else (config.EMAIL_FROM or self.username)
        self.recipients = list(recipients if recipients is not None else config.EMAIL_TO)
        self._enabled = enabled if enabled is not None else config.EMAIL_ENABLED
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._enabled and self.username and self.password and self.sender and self.recipients)

    def build_message(self, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender or ""
        msg["To"] = ", ".join(self.recipients)
        msg.set_content(body)
        return msg

    def send(self, subject: str, body: str) -> None:
        if not self.enabled:
            raise NotificationError(
                "Email config incomplete; set EMAIL_USERNAME, EMAIL_PASSWORD, EMAIL_FROM, EMAIL_TO"
            )

        msg = self.build_message(subject, body)
        try:
            if self.use_tls and self.port == 587:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
                    s.ehlo()
                    s.starttls(context=ssl.create_default_context())
                    s.login(self.username, self.password)
                    s.send_message(msg)
            else:
                with smtplib.SMTP_SSL(
                    self.host, self.port, context=ssl.create_default_context(), timeout=self.timeout
                ) as s:
                    s.login(self.username, self.password)
                    s.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {self.host}:{self.port} failed: {e}") from e
        logger.info("Email sent to %s (subject=%s)", ", ".join(self.recipients), subject)


__all__ = ["EmailSink"]
