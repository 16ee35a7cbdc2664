"""Value types shared by the geocoder, the weather fetcher and the UI layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

# Span of the map region drawn around a pin, in metres.
_REGION_LATITUDINAL_METERS = 500_000
_REGION_LONGITUDINAL_METERS = 1_000_000


@dataclass(frozen=True)
class Coordinate:
    """A (latitude, longitude) pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180]")

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class WeatherReading:
    """Minimum and maximum temperature (Celsius) from one observation."""

    min_temp: float
    max_temp: float

    def to_dict(self) -> Dict[str, float]:
        return {"min_temp": self.min_temp, "max_temp": self.max_temp}


@dataclass(frozen=True)
class MapRegion:
    """Visible map area centred on the pinned coordinate."""

    center: Coordinate
    latitudinal_meters: int = _REGION_LATITUDINAL_METERS
    longitudinal_meters: int = _REGION_LONGITUDINAL_METERS

    @classmethod
    def around(cls, coordinate: Coordinate) -> "MapRegion":
        return cls(center=coordinate)

    def to_dict(self) -> Dict[str, object]:
        return {
            "center": self.center.to_dict(),
            "pin": self.center.to_dict(),
            "latitudinal_meters": self.latitudinal_meters,
            "longitudinal_meters": self.longitudinal_meters,
        }


__all__ = ["Coordinate", "WeatherReading", "MapRegion"]
