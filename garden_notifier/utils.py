"""Helper utilities.

This module centralises common helper functions such as creating a
configured HTTP session, applying retry policies to network calls and
writing JSON files without leaving half-written output behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

import requests
from requests import Response
from tenacity import (after_log, retry, retry_if_exception_type,
                      stop_after_attempt, stop_before_delay, wait_exponential)


logger = logging.getLogger(__name__)


def get_http_session() -> requests.Session:
    """Return a new HTTP session with sensible defaults.

    The session identifies the notifier and asks for JSON.  Caller is
    responsible for closing the session or letting it be garbage collected.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": "Mozilla/5.0 (compatible; GardenNotifier/1.0)",
            "Accept": "application/json, text/javascript, */*; q=0.01",
        }
    )
    return session


class HTTPError(Exception):
    """Raised when an HTTP request fails after retries."""


class ServerError(HTTPError):
    """The server answered with a 5xx status; worth another attempt."""


def _raise_for_status(resp: Response) -> None:
    try:
        resp.raise_for_status()
    except requests.RequestException as e:
        raise HTTPError(str(e)) from e


def retryable_request(
    method: Optional[Callable[..., Response]] = None,
    *,
    max_attempts: int = 5,
    max_delay: Optional[float] = None,
) -> Callable[..., Any]:
    """Decorator factory to apply retry logic to HTTP calls.

    The decorated function must accept a `requests.Session` as its first
    argument, followed by URL and optional kwargs, and return a
    `requests.Response`.  Only network errors and 5xx answers are retried;
    any other error status fails on the first attempt.  Up to
    *max_attempts* are made with exponential back‑off between 1 and 10
    seconds, and no attempt is scheduled to start after *max_delay* seconds.

    Usable bare (``@retryable_request``) or with arguments.
    """
    stop = stop_after_attempt(max_attempts)
    if max_delay is not None:
        stop = stop | stop_before_delay(max_delay)

    def decorate(fn: Callable[..., Response]) -> Callable[..., Response]:
        @retry(
            reraise=True,
            stop=stop,
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=(
                retry_if_exception_type(requests.RequestException)
                | retry_if_exception_type(ServerError)
            ),
            after=after_log(logger, logging.WARNING),
        )
        def wrapper(session: requests.Session, url: str, **kwargs: Any) -> Response:
            response = fn(session, url, **kwargs)
            if response.status_code >= 500:
                raise ServerError(f"Server returned status {response.status_code}")
            _raise_for_status(response)
            return response

        return wrapper

    if method is not None:
        return decorate(method)
    return decorate


def atomic_write_json(path: str | os.PathLike, data: Any) -> None:
    """Write *data* as indented JSON, replacing *path* in one step.

    The payload goes to a temporary file in the target directory which is
    then renamed over *path*, so readers only ever see a complete file.
    Raises ``OSError`` or ``TypeError``/``ValueError`` from ``json`` on failure.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


__all__ = ["get_http_session", "retryable_request", "HTTPError", "ServerError", "atomic_write_json"]
