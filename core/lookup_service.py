"""Run one place lookup: geocode the query, then fetch the weather there.

``LookupService`` is the single entry point used by the CLI and the web API.
It never lets a ``LookupFailure`` escape ``lookup``/``submit``: failures are
logged, recorded in the lookup log and returned on the ``LookupOutcome`` while
the displayed state keeps its previous coordinate and reading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Optional, Protocol, Tuple

from core.errors import FetchError, LookupFailure
from core.lookup_logger import LookupLogger, LookupRecord
from core.lookup_state import (
    LookupState,
    LookupStore,
    begin_lookup,
    complete_lookup,
    fail_lookup,
)
from core.models import Coordinate, WeatherReading

logger = logging.getLogger(__name__)


class PlaceResolver(Protocol):
    def resolve(self, place_query: str) -> Coordinate:
        ...


class ReadingFetcher(Protocol):
    def fetch(self, coordinate: Coordinate, api_key: str) -> WeatherReading:
        ...


@dataclass
class LookupOutcome:
    """Result of one lookup as seen by the presentation layer."""

    state: LookupState
    updated: bool
    coordinate: Optional[Coordinate] = None
    reading: Optional[WeatherReading] = None
    error: Optional[LookupFailure] = None

    def error_dict(self) -> Optional[dict]:
        if self.error is None:
            return None
        return {"type": self.error.kind, "message": str(self.error)}


class LookupService:
    """Coordinates the geocoder, the weather fetcher and the lookup log.

    A lookup is two network steps: the place query becomes a ``Coordinate``
    and the coordinate becomes a ``WeatherReading``. Either step may raise a
    ``LookupFailure``; ``execute`` lets it propagate, while ``lookup`` and
    ``submit`` fold it into a ``LookupOutcome`` whose state still holds the
    previous coordinate and reading. Every attempt is logged and, when a
    ``LookupLogger`` is configured, written to the lookup log.
    """

    def __init__(
        self,
        geocoder: PlaceResolver,
        fetcher: ReadingFetcher,
        *,
        api_key: str,
        lookup_logger: Optional[LookupLogger] = None,
    ) -> None:
        self._geocoder = geocoder
        self._fetcher = fetcher
        self._api_key = api_key or ""
        self._lookup_logger = lookup_logger

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def geocoder(self) -> PlaceResolver:
        return self._geocoder

    @property
    def fetcher(self) -> ReadingFetcher:
        return self._fetcher

    @property
    def lookup_logger(self) -> Optional[LookupLogger]:
        return self._lookup_logger

    # WHAT: run both lookup steps and record the attempt.
    # WHY: the CLI and the web API need the same logging and lookup-log entry.
    # HOW: time the two calls, write a record for the success or failure, then
    # return the pair or re-raise.
    def execute(self, query: str, *, sequence: Optional[int] = None) -> Tuple[Coordinate, WeatherReading]:
        """Resolve ``query`` and fetch its reading; raises ``LookupFailure``."""

        started = perf_counter()
        coordinate: Optional[Coordinate] = None
        try:
            coordinate = self._geocoder.resolve(query)
            reading = self._fetcher.fetch(coordinate, self._api_key)
        except LookupFailure as exc:
            logger.warning("Lookup for %r failed (%s): %s", query, exc.kind, exc)
            self._record(
                query,
                exc.kind,
                started,
                sequence=sequence,
                coordinate=coordinate,
                error=str(exc),
                status_code=exc.status_code if isinstance(exc, FetchError) else None,
            )
            raise

        logger.info(
            "Lookup for %r: min %.1f / max %.1f at (%.4f, %.4f)",
            query,
            reading.min_temp,
            reading.max_temp,
            coordinate.latitude,
            coordinate.longitude,
        )
        self._record(query, "ok", started, sequence=sequence, coordinate=coordinate, reading=reading)
        return coordinate, reading

    def lookup(self, state: LookupState, query: str) -> LookupOutcome:
        """Single-threaded lookup returning the next state."""

        state, ticket = begin_lookup(state, query)
        try:
            coordinate, reading = self.execute(query, sequence=ticket.sequence)
        except LookupFailure as exc:
            return LookupOutcome(state=fail_lookup(state, ticket, exc), updated=False, error=exc)
        return LookupOutcome(
            state=complete_lookup(state, ticket, coordinate, reading),
            updated=True,
            coordinate=coordinate,
            reading=reading,
        )

    # WHAT: lookup against the shared store used by the web API.
    # WHY: concurrent requests may finish out of order.
    # HOW: take a ticket before the network calls; the store ignores results
    # whose ticket is no longer the newest.
    def submit(self, store: LookupStore, query: str) -> LookupOutcome:
        """Lookup against a shared store; results of superseded tickets are dropped."""

        ticket = store.begin(query)
        try:
            coordinate, reading = self.execute(query, sequence=ticket.sequence)
        except LookupFailure as exc:
            return LookupOutcome(state=store.fail(ticket, exc), updated=False, error=exc)

        state = store.complete(ticket, coordinate, reading)
        applied = state.is_current(ticket)
        if not applied:
            logger.info("Dropped result of superseded lookup #%d for %r", ticket.sequence, query)
        return LookupOutcome(state=state, updated=applied, coordinate=coordinate, reading=reading)

    def _record(
        self,
        query: str,
        status: str,
        started: float,
        *,
        sequence: Optional[int] = None,
        coordinate: Optional[Coordinate] = None,
        reading: Optional[WeatherReading] = None,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        if not self._lookup_logger or not self._lookup_logger.enabled:
            return
        record = LookupRecord.new(
            query=query,
            status=status,
            sequence=sequence,
            latitude=coordinate.latitude if coordinate else None,
            longitude=coordinate.longitude if coordinate else None,
            min_temp=reading.min_temp if reading else None,
            max_temp=reading.max_temp if reading else None,
            error=error,
            status_code=status_code,
            latency_ms=int((perf_counter() - started) * 1000),
        )
        try:
            self._lookup_logger.log_lookup(record)
        except OSError:
            logger.exception("Failed to write lookup log %s", self._lookup_logger.log_path)


__all__ = ["LookupOutcome", "LookupService", "PlaceResolver", "ReadingFetcher"]
