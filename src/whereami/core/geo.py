"""
Geospatial helpers.

Two points is all this app ever compares, so a plain haversine and a planar
average are enough; no GIS dependency is pulled in.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, cos, isfinite, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (isfinite(self.lat) and isfinite(self.lon)):
            raise ValueError(f"Coordinate components must be finite, got ({self.lat}, {self.lon})")
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude out of range [-90, 90]: {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(f"Longitude out of range [-180, 180]: {self.lon}")

    def as_tuple(self) -> tuple[float, float]:
        return self.lat, self.lon


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h just past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * asin(sqrt(h))


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    """Return the component-wise average of two points.

    This is a planar average, not the geodesic midpoint: it drifts for points far
    apart and is wrong for pairs straddling the antimeridian.
    """
    return Coordinate(lat=(a.lat + b.lat) / 2, lon=(a.lon + b.lon) / 2)
