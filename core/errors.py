"""Failure types raised by the lookup pipeline.

Both failures are recoverable: callers keep the previously displayed values
and report a diagnostic instead of crashing.
"""

from __future__ import annotations

from typing import Optional


class LookupFailure(Exception):
    """Base class for geocoding and weather fetch failures."""

    kind = "lookup_error"


class GeocodeError(LookupFailure):
    """Raised when a place query cannot be turned into a coordinate."""

    kind = "geocode_error"

    def __init__(self, message: str, *, query: str = "") -> None:
        super().__init__(message)
        self.query = query


class FetchError(LookupFailure):
    """Raised when the weather API call fails or returns an unusable body."""

    kind = "fetch_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = ["LookupFailure", "GeocodeError", "FetchError"]
