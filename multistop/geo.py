"""Coordinate value type and geospatial helpers shared across modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import osmnx as ox

from .errors import ValidationError

_GREAT_CIRCLE = getattr(ox.distance, "great_circle", None)
if _GREAT_CIRCLE is None:
    try:
        _GREAT_CIRCLE = ox.distance.great_circle_vec
    except AttributeError as exc:  # pragma: no cover - legacy fallback guard
        msg = "OSMnx distance helpers lack both `great_circle` and `great_circle_vec`."
        raise AttributeError(msg) from exc

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

LonLat = tuple[float, float]


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Immutable `(latitude, longitude)` pair.

    Longitude is deliberately left unbounded; only latitude carries a range.
    """

    latitude: float
    longitude: float

    @classmethod
    def parse(cls, latitude: object, longitude: object) -> Coordinate:
        """Build a validated coordinate from raw numeric or string input."""
        coordinate = cls(_to_float(latitude, "latitude"), _to_float(longitude, "longitude"))
        coordinate.validate()
        return coordinate

    @classmethod
    def from_lon_lat(cls, point: LonLat) -> Coordinate:
        lon, lat = point
        return cls(latitude=float(lat), longitude=float(lon))

    @property
    def is_valid(self) -> bool:
        try:
            self.validate()
        except ValidationError:
            return False
        return True

    def validate(self) -> None:
        """Raise `ValidationError` when the coordinate breaks its invariant."""
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            msg = f"Coordinate values must be finite: {self}"
            raise ValidationError(msg)
        if not MIN_LATITUDE <= self.latitude <= MAX_LATITUDE:
            msg = f"Latitude {self.latitude} outside [{MIN_LATITUDE}, {MAX_LATITUDE}]."
            raise ValidationError(msg)

    def as_lon_lat(self) -> LonLat:
        return (self.longitude, self.latitude)


def _to_float(value: object, label: str) -> float:
    if isinstance(value, bool):
        msg = f"{label} must be numeric, got {value!r}."
        raise ValidationError(msg)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        msg = f"{label} must be numeric, got {value!r}."
        raise ValidationError(msg) from exc
    if math.isnan(number):
        msg = f"{label} must be numeric, got {value!r}."
        raise ValidationError(msg)
    return number


def great_circle_meters(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Return the great-circle distance between two lat/lon points in meters."""
    return float(_GREAT_CIRCLE(lat1, lon1, lat2, lon2))


def great_circle_meters_many(
    lat: float,
    lon: float,
    lats: Sequence[float] | np.ndarray,
    lons: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Vectorized distances (meters) from one point to many lat/lon points."""
    return np.asarray(
        _GREAT_CIRCLE(lat, lon, np.asarray(lats, dtype=float), np.asarray(lons, dtype=float)),
        dtype=float,
    )
