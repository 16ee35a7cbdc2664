"""Text rendering of the lookup state for terminal output."""

from __future__ import annotations

from typing import List

from core.lookup_state import LookupState
from core.models import MapRegion

_NO_VALUE = "--"


def _format_temp(value: float | None) -> str:
    if value is None:
        return _NO_VALUE
    return f"{value:.1f}℃"


def format_reading_lines(state: LookupState) -> List[str]:
    """Return the max/min temperature lines, max first."""

    reading = state.reading
    lines = [
        f"Max. Temp: {_format_temp(reading.max_temp if reading else None)}",
        f"Min. Temp: {_format_temp(reading.min_temp if reading else None)}",
    ]
    if state.is_stale:
        lines.append("(showing previous values; last update failed)")
    return lines


def format_map_pin(state: LookupState) -> str:
    region = MapRegion.around(state.coordinate)
    return (
        f"Map pin: {region.center.latitude:.4f}, {region.center.longitude:.4f} "
        f"(view {region.latitudinal_meters // 1000} km x {region.longitudinal_meters // 1000} km)"
    )


def render_state(state: LookupState) -> str:
    return "\n".join(format_reading_lines(state) + [format_map_pin(state)])


__all__ = ["format_map_pin", "format_reading_lines", "render_state"]
