"""Assemble the lookup service and run the interactive CLI loop."""

from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

from app.config import (
    get_default_coordinate,
    get_geocode_url,
    get_http_timeout,
    get_log_backup_count,
    get_log_level,
    get_log_max_bytes,
    get_lookup_log_path,
    get_user_agent,
    get_weather_api_key,
    get_weather_base_url,
    is_logging_enabled,
)
from app.display import render_state
from core.geocoder import Geocoder
from core.http import build_session
from core.lookup_logger import ApiKeyRedactionFilter, LookupLogger
from core.lookup_service import LookupService
from core.lookup_state import LookupState
from core.weather_fetcher import WeatherFetcher

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


# -- Wiring --------------------------------------------------------------------
def configure_logging(level: str | None = None, secrets: List[str] | None = None) -> None:
    """Configure the root logger once and attach API-key redaction to its handlers."""

    logging.basicConfig(level=level or get_log_level(), format=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    redaction = ApiKeyRedactionFilter(secrets or [])
    for handler in logging.getLogger().handlers:
        handler.addFilter(redaction)
    # urllib3 logs full request URLs (including appid) at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_service(env: Dict[str, str] | None = None) -> LookupService:
    """Wire geocoder, fetcher and lookup log from configuration.

    Every entry point (CLI and web API) builds its service here so both share
    identical settings.
    """
    api_key = get_weather_api_key(env)
    if not api_key:
        logger.warning("OPENWEATHER_API_KEY is not set; weather lookups will fail.")

    session = build_session(get_user_agent(env))
    timeout = get_http_timeout(env)
    geocoder = Geocoder(session, url=get_geocode_url(env), timeout=timeout)
    fetcher = WeatherFetcher(session, base_url=get_weather_base_url(env), timeout=timeout)
    lookup_logger = LookupLogger(
        log_path=get_lookup_log_path(env),
        enabled=is_logging_enabled(env),
        secrets=[api_key] if api_key else [],
        max_bytes=get_log_max_bytes(env),
        backup_count=get_log_backup_count(env),
    )
    return LookupService(geocoder, fetcher, api_key=api_key or "", lookup_logger=lookup_logger)


def initial_state(env: Dict[str, str] | None = None) -> LookupState:
    return LookupState(coordinate=get_default_coordinate(env))


# -- Interactive CLI loop ------------------------------------------------------
def run_once(service: LookupService, state: LookupState, query: str) -> LookupState:
    """Run one lookup, print the result and return the next state."""

    outcome = service.lookup(state, query)
    if outcome.error is not None:
        print(f"No update: {outcome.error}")
    print(render_state(outcome.state))
    return outcome.state


def main(argv: Optional[List[str]] = None) -> int:
    """CLI driver: one-shot lookup when a place is given, otherwise a prompt loop.

    Exits on EOF/KeyboardInterrupt or "quit"/"exit". In one-shot mode the exit
    code is 1 when the lookup failed.
    """
    parser = argparse.ArgumentParser(description="Look up min/max temperature for a place.")
    parser.add_argument("place", nargs="?", default=None, help='Place to look up, e.g. "Stockholm, Sweden".')
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run.")
    args = parser.parse_args(argv)

    api_key = get_weather_api_key()
    configure_logging(args.log_level.upper() if args.log_level else None, [api_key] if api_key else [])
    service = build_service()
    state = initial_state()

    if args.place is not None:
        next_state = run_once(service, state, args.place)
        return 0 if next_state.last_error is None else 1

    print("Welcome to the MaxTemp App. Type 'quit' or 'exit' to stop.")
    print(render_state(state))
    while True:
        try:
            message = input("Enter City, Country: ")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if message.strip().lower() in {"quit", "exit"}:
            print("Goodbye!")
            break

        state = run_once(service, state, message)
        print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
