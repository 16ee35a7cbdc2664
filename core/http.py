"""Shared HTTP plumbing for the geocoding and weather clients."""

from __future__ import annotations

import requests

DEFAULT_TIMEOUT = 8.0
DEFAULT_USER_AGENT = "maxtemp/0.1"


def build_session(user_agent: str | None = None) -> requests.Session:
    """Return a session with JSON-friendly default headers.

    No retry adapter is mounted: a failed call surfaces to the caller once.
    """

    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent or DEFAULT_USER_AGENT,
        "Accept": "application/json",
    })
    return session


def http_get(session: requests.Session, url: str, **kwargs) -> requests.Response:
    # Wrapper around session.get with a default timeout
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    return session.get(url, **kwargs)


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_USER_AGENT", "build_session", "http_get"]
