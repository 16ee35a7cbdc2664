"""Centralize defaults and environment lookups for the lookup service."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from core.models import Coordinate

load_dotenv()

# ---------------------------------------------------------------------------
# Default configuration values
# ---------------------------------------------------------------------------
_DEFAULT_WEATHER_BASE_URL = "https://api.openweathermap.org"
_DEFAULT_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
_DEFAULT_HTTP_TIMEOUT: float = 8.0
_DEFAULT_USER_AGENT = "maxtemp/0.1"
_DEFAULT_LATITUDE: float = 59.3293
_DEFAULT_LONGITUDE: float = 18.0686
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_LOGGING_ENABLED: bool = True
_DEFAULT_LOG_DIR = "logs"
_LOOKUP_LOG_FILENAME = "lookups.jsonl"
_DEFAULT_LOG_MAX_BYTES = 1_000_000
_DEFAULT_LOG_BACKUP_COUNT = 5
_DEFAULT_WEB_UI_HOST = "127.0.0.1"
_DEFAULT_WEB_UI_PORT = 9000
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _parse_float(raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_int(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Upstream services
# ---------------------------------------------------------------------------
def get_weather_api_key(env: Dict[str, str] | None = None) -> str | None:
    """Return the OpenWeather API key.

    Args:
        env: Optional mapping used instead of ``os.environ`` to simplify testing.

    Returns:
        The stripped key if present and non-empty, otherwise ``None``.
    """

    source = env if env is not None else os.environ
    value = (source.get("OPENWEATHER_API_KEY") or "").strip()
    return value or None


def get_weather_base_url(env: Dict[str, str] | None = None) -> str:
    """Return the scheme and host of the weather API (no trailing slash)."""

    source = env if env is not None else os.environ
    value = (source.get("WEATHER_API_BASE_URL") or "").strip()
    return (value or _DEFAULT_WEATHER_BASE_URL).rstrip("/")


def get_geocode_url(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    value = (source.get("GEOCODE_API_URL") or "").strip()
    return value or _DEFAULT_GEOCODE_URL


def get_http_timeout(env: Dict[str, str] | None = None) -> float:
    """Return the per-request timeout in seconds; non-positive values fall back."""

    source = env if env is not None else os.environ
    value = _parse_float(source.get("HTTP_TIMEOUT_SECONDS"), _DEFAULT_HTTP_TIMEOUT)
    return value if value > 0 else _DEFAULT_HTTP_TIMEOUT


def get_user_agent(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    return source.get("HTTP_USER_AGENT") or _DEFAULT_USER_AGENT


def get_default_coordinate(env: Dict[str, str] | None = None) -> Coordinate:
    """Return the coordinate shown before the first successful lookup."""

    source = env if env is not None else os.environ
    latitude = _parse_float(source.get("DEFAULT_LATITUDE"), _DEFAULT_LATITUDE)
    longitude = _parse_float(source.get("DEFAULT_LONGITUDE"), _DEFAULT_LONGITUDE)
    try:
        return Coordinate(latitude, longitude)
    except ValueError:
        return Coordinate(_DEFAULT_LATITUDE, _DEFAULT_LONGITUDE)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
def get_log_level(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    raw = (source.get("LOG_LEVEL") or "").strip().upper()
    return raw if raw in _VALID_LOG_LEVELS else _DEFAULT_LOG_LEVEL


def is_logging_enabled(env: Dict[str, str] | None = None) -> bool:
    """Determine whether lookups are written to the JSONL lookup log."""

    source = env if env is not None else os.environ
    return _parse_bool(source.get("LOGGING_ENABLED"), _DEFAULT_LOGGING_ENABLED)


def get_log_dir(env: Dict[str, str] | None = None) -> Path:
    source = env if env is not None else os.environ
    override = source.get("LOG_DIR")
    return Path(override) if override else Path(_DEFAULT_LOG_DIR)


def get_lookup_log_path(env: Dict[str, str] | None = None) -> Path:
    """Return the full path for the lookup log JSONL file."""

    return get_log_dir(env) / _LOOKUP_LOG_FILENAME


def get_log_max_bytes(env: Dict[str, str] | None = None) -> int:
    """Return the maximum size in bytes before rotating log files."""

    source = env if env is not None else os.environ
    return max(_parse_int(source.get("LOG_MAX_BYTES"), _DEFAULT_LOG_MAX_BYTES), 0)


def get_log_backup_count(env: Dict[str, str] | None = None) -> int:
    """Return the number of rotated log files to retain."""

    source = env if env is not None else os.environ
    return max(_parse_int(source.get("LOG_BACKUP_COUNT"), _DEFAULT_LOG_BACKUP_COUNT), 0)


# ---------------------------------------------------------------------------
# Web UI
# ---------------------------------------------------------------------------
def get_web_ui_host(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    return source.get("WEB_UI_HOST", _DEFAULT_WEB_UI_HOST)


def get_web_ui_port(env: Dict[str, str] | None = None) -> int:
    source = env if env is not None else os.environ
    value = _parse_int(source.get("WEB_UI_PORT"), _DEFAULT_WEB_UI_PORT)
    return value if 0 < value <= 65535 else _DEFAULT_WEB_UI_PORT
