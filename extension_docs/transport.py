"""Shared HTTP transport for outbound calls."""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

USER_AGENT = "extension-docs/0.1"
DEFAULT_TIMEOUT = 30.0


def build_session(*, allowed_methods: tuple[str, ...] = ("GET", "HEAD")) -> requests.Session:
    """Return a session that retries transient failures for ``allowed_methods``.

    Only idempotent methods are retried by default; the workflow dispatch
    POST is sent once.
    """
    session = requests.Session()
    retry = Retry(
        total=5,
        read=5,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=allowed_methods,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session


__all__ = ["DEFAULT_TIMEOUT", "USER_AGENT", "build_session"]
