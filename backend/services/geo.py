"""Great-circle distance helpers."""
from __future__ import annotations

import math

from domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates, in kilometres.

    Returns exactly 0.0 for identical points. The asin argument is clamped so
    floating point drift near antipodes cannot produce NaN.
    """
    if a == b:
        return 0.0
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(dlng / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.asin(math.sqrt(h))


def rounded_distance_km(a: Coordinate, b: Coordinate, decimals: int = 1) -> float:
    return round(distance_km(a, b), decimals)
