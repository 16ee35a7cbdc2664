"""Application state for the place lookup screen.

State is an immutable ``LookupState`` value. Transitions are pure functions
that return a new value, so the presentation layer only ever swaps one
reference. Every lookup carries a ``LookupTicket``; results for any ticket
other than the newest are dropped so a slow response cannot overwrite a
newer one.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from core.models import Coordinate, MapRegion, WeatherReading

DEFAULT_COORDINATE = Coordinate(59.3293, 18.0686)  # Stockholm


@dataclass(frozen=True)
class LookupTicket:
    sequence: int
    query: str


@dataclass(frozen=True)
class LookupState:
    """Current map coordinate, last good reading and lookup bookkeeping."""

    coordinate: Coordinate = DEFAULT_COORDINATE
    reading: Optional[WeatherReading] = None
    query_in_progress: Optional[str] = None
    sequence: int = 0
    last_error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.query_in_progress is not None

    @property
    def is_stale(self) -> bool:
        """True when a reading is shown but the latest attempt failed."""

        return self.reading is not None and self.last_error is not None

    def is_current(self, ticket: LookupTicket) -> bool:
        return ticket.sequence == self.sequence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinate": self.coordinate.to_dict(),
            "reading": self.reading.to_dict() if self.reading else None,
            "map_region": MapRegion.around(self.coordinate).to_dict(),
            "query_in_progress": self.query_in_progress,
            "sequence": self.sequence,
            "last_error": self.last_error,
            "stale": self.is_stale,
        }


# --- Transitions -----------------------------------------------------------
def begin_lookup(state: LookupState, query: str) -> Tuple[LookupState, LookupTicket]:
    ticket = LookupTicket(sequence=state.sequence + 1, query=query)
    return replace(state, sequence=ticket.sequence, query_in_progress=query), ticket


def complete_lookup(
    state: LookupState,
    ticket: LookupTicket,
    coordinate: Coordinate,
    reading: WeatherReading,
) -> LookupState:
    if not state.is_current(ticket):
        return state
    return replace(
        state,
        coordinate=coordinate,
        reading=reading,
        query_in_progress=None,
        last_error=None,
    )


def fail_lookup(state: LookupState, ticket: LookupTicket, error: BaseException | str) -> LookupState:
    """Record a failed attempt; the coordinate and reading stay as they were."""

    if not state.is_current(ticket):
        return state
    return replace(state, query_in_progress=None, last_error=str(error))


# --- Shared holder ---------------------------------------------------------
class LookupStore:
    """Lock-guarded holder for one ``LookupState`` shared across threads.

    The network round trip happens between ``begin`` and ``complete``/``fail``
    without holding the lock.
    """

    def __init__(self, initial: Optional[LookupState] = None) -> None:
        self._state = initial or LookupState()
        self._lock = threading.Lock()

    def snapshot(self) -> LookupState:
        with self._lock:
            return self._state

    def begin(self, query: str) -> LookupTicket:
        with self._lock:
            self._state, ticket = begin_lookup(self._state, query)
            return ticket

    def complete(self, ticket: LookupTicket, coordinate: Coordinate, reading: WeatherReading) -> LookupState:
        with self._lock:
            self._state = complete_lookup(self._state, ticket, coordinate, reading)
            return self._state

    def fail(self, ticket: LookupTicket, error: BaseException | str) -> LookupState:
        with self._lock:
            self._state = fail_lookup(self._state, ticket, error)
            return self._state


__all__ = [
    "DEFAULT_COORDINATE",
    "LookupState",
    "LookupStore",
    "LookupTicket",
    "begin_lookup",
    "complete_lookup",
    "fail_lookup",
]
