"""Resolve free-text place names into coordinates via Open-Meteo geocoding.

The provider's ranking decides which place wins: the first result is taken
without further disambiguation. A ``"City, Country"`` query only narrows the
candidates to those in the hinted country when any of them match.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from core.errors import GeocodeError
from core.http import DEFAULT_TIMEOUT, build_session, http_get
from core.models import Coordinate

GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
_HINTED_RESULT_COUNT = 10

logger = logging.getLogger(__name__)


def split_place_query(place_query: str) -> Tuple[str, Optional[str]]:
    """Split ``"Name, Hint"`` into the searchable name and an optional hint."""

    name, _, hint = (place_query or "").strip().partition(",")
    hint = hint.strip()
    return name.strip(), hint or None


def _matches_hint(result: Dict[str, Any], hint: str) -> bool:
    wanted = hint.casefold()
    for key in ("country", "country_code"):
        value = result.get(key)
        if isinstance(value, str) and value.strip().casefold() == wanted:
            return True
    return False


def _pick_result(results: List[Dict[str, Any]], hint: Optional[str]) -> Dict[str, Any]:
    if hint:
        for result in results:
            if isinstance(result, dict) and _matches_hint(result, hint):
                return result
    return results[0]


class Geocoder:
    """Client for the Open-Meteo geocoding search endpoint."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        url: str = GEOCODE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session if session is not None else build_session()
        self._url = url
        self._timeout = timeout

    def resolve(self, place_query: str) -> Coordinate:
        """Return the coordinate of the best match for ``place_query``.

        Raises:
            GeocodeError: the query is empty, the service failed, or nothing
                matched.
        """

        name, hint = split_place_query(place_query)
        if not name:
            raise GeocodeError("Place query is empty.", query=place_query or "")

        params = {
            "name": name,
            "count": _HINTED_RESULT_COUNT if hint else 1,
            "format": "json",
        }
        try:
            response = http_get(self._session, self._url, params=params, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise GeocodeError(f"Geocoding request failed for '{name}': {exc}", query=place_query) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GeocodeError(f"Geocoding response for '{name}' was not valid JSON.", query=place_query) from exc

        results = data.get("results") if isinstance(data, dict) else None
        if not results or not isinstance(results, list):
            raise GeocodeError(f"No places matched '{place_query.strip()}'.", query=place_query)

        top = _pick_result(results, hint)
        try:
            coordinate = Coordinate(float(top["latitude"]), float(top["longitude"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodeError(f"Geocoding result for '{name}' has no usable coordinates.", query=place_query) from exc

        logger.debug("Resolved %r to (%.4f, %.4f)", place_query, coordinate.latitude, coordinate.longitude)
        return coordinate


def resolve(place_query: str, *, session: Optional[requests.Session] = None) -> Coordinate:
    """Module-level shortcut for ``Geocoder(session).resolve(place_query)``."""

    return Geocoder(session).resolve(place_query)


__all__ = ["GEOCODE_URL", "Geocoder", "resolve", "split_place_query"]
