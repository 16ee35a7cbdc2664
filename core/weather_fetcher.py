"""Fetch current min/max temperature from the OpenWeather current-weather API.

Only ``main.temp_min`` and ``main.temp_max`` are read from the response; the
rest of the payload is ignored.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from core.errors import FetchError
from core.http import DEFAULT_TIMEOUT, build_session, http_get
from core.lookup_logger import redact_secrets
from core.models import Coordinate, WeatherReading

WEATHER_BASE_URL = "https://api.openweathermap.org"
WEATHER_PATH = "/data/2.5/weather"

logger = logging.getLogger(__name__)


# --- Request helpers -------------------------------------------------------
def build_weather_params(coordinate: Coordinate, api_key: str) -> Dict[str, Any]:
    return {
        "lat": coordinate.latitude,
        "lon": coordinate.longitude,
        "appid": api_key,
        "units": "metric",
    }


def build_weather_url(coordinate: Coordinate, api_key: str, base_url: str = WEATHER_BASE_URL) -> str:
    """Return the full request URL, e.g. ``.../data/2.5/weather?lat=..&units=metric``."""

    query = urlencode(build_weather_params(coordinate, api_key))
    return f"{base_url.rstrip('/')}{WEATHER_PATH}?{query}"


# --- Response parsing ------------------------------------------------------
def _temperature(main: Dict[str, Any], key: str) -> float:
    value = main.get(key)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise FetchError(f"Weather response field 'main.{key}' is missing or not a number.")
    if not math.isfinite(value):
        raise FetchError(f"Weather response field 'main.{key}' is not a finite number.")
    return float(value)


def parse_weather_payload(payload: Any) -> WeatherReading:
    """Extract a ``WeatherReading`` from a decoded JSON body."""

    main = payload.get("main") if isinstance(payload, dict) else None
    if not isinstance(main, dict):
        raise FetchError("Weather response has no 'main' object.")
    return WeatherReading(
        min_temp=_temperature(main, "temp_min"),
        max_temp=_temperature(main, "temp_max"),
    )


# --- Client ----------------------------------------------------------------
class WeatherFetcher:
    """Client issuing one GET per ``fetch`` call; failures are never retried."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: str = WEATHER_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session if session is not None else build_session()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def fetch(self, coordinate: Coordinate, api_key: str) -> WeatherReading:
        """Return the current min/max temperature in Celsius at ``coordinate``.

        Raises:
            FetchError: missing API key, transport failure, non-success status
                or a body without the expected ``main`` temperatures.
        """

        if not api_key or not api_key.strip():
            raise FetchError("Weather API key is not configured.")

        api_key = api_key.strip()
        url = f"{self._base_url}{WEATHER_PATH}"
        params = build_weather_params(coordinate, api_key)
        logger.debug("Requesting %s", build_weather_url(coordinate, "REDACTED", self._base_url))
        try:
            response = http_get(self._session, url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            # requests embeds the full URL, appid included, in its messages
            raise FetchError(f"Weather request failed: {redact_secrets(str(exc), [api_key])}") from exc

        status = response.status_code
        if not 200 <= status < 300:
            raise FetchError(f"Weather API returned HTTP {status}.", status_code=status)

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("Weather response was not valid JSON.", status_code=status) from exc

        reading = parse_weather_payload(payload)
        logger.debug(
            "Fetched reading min=%.1f max=%.1f at (%.4f, %.4f)",
            reading.min_temp,
            reading.max_temp,
            coordinate.latitude,
            coordinate.longitude,
        )
        return reading


def fetch(coordinate: Coordinate, api_key: str, *, session: Optional[requests.Session] = None) -> WeatherReading:
    """Module-level shortcut for ``WeatherFetcher(session).fetch(...)``."""

    return WeatherFetcher(session).fetch(coordinate, api_key)


__all__ = [
    "WEATHER_BASE_URL",
    "WEATHER_PATH",
    "WeatherFetcher",
    "build_weather_params",
    "build_weather_url",
    "fetch",
    "parse_weather_payload",
]
