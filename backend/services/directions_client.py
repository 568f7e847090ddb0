"""
Driving directions from an OSRM routing server.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from domain.errors import NoRouteFound, RouteFailed
from domain.models import Coordinate, DirectionsLeg, DirectionsResult
from services.http_client import get_json
from settings import settings

logger = logging.getLogger(__name__)

# OSRM profile names per travel mode
OSRM_PROFILES = {
    "driving": "driving",
    "walking": "foot",
    "cycling": "bike",
}


def parse_osrm_response(data: dict) -> DirectionsResult:
    """Turn an OSRM /route response into a DirectionsResult (first route only)."""
    code = data.get("code")
    if code in ("NoRoute", "NoSegment"):
        raise NoRouteFound(data.get("message") or code)
    if code != "Ok":
        raise RouteFailed(f"OSRM error code: {code}")
    routes = data.get("routes") or []
    if not routes:
        raise NoRouteFound("OSRM returned no routes")

    first = routes[0]
    legs = tuple(
        DirectionsLeg(
            distance_meters=float(leg.get("distance") or 0.0),
            duration_seconds=float(leg.get("duration") or 0.0),
        )
        for leg in first.get("legs") or []
    )
    geometry = first.get("geometry") or {}
    coords = geometry.get("coordinates", []) if isinstance(geometry, dict) else []
    polyline: List[Coordinate] = []
    for pair in coords:
        try:
            lon, lat = pair[0], pair[1]
            polyline.append(Coordinate(float(lat), float(lon)))
        except (TypeError, ValueError, IndexError):
            continue
    return DirectionsResult(legs=legs, polyline=tuple(polyline))


class OsrmDirectionsClient:
    def __init__(self, base_url: Optional[str] = None) -> None:
        self.base_url = (base_url or settings.OSRM_BASE_URL).rstrip("/")

    async def route(
        self, origin: Coordinate, destination: Coordinate, mode: str = "driving"
    ) -> DirectionsResult:
        profile = OSRM_PROFILES.get(mode)
        if profile is None:
            raise RouteFailed(f"unsupported travel mode: {mode}")
        coord_str = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        url = f"{self.base_url}/route/v1/{profile}/{coord_str}"
        params = {
            "overview": "full",
            "alternatives": "false",
            "geometries": "geojson",
            "steps": "false",
        }
        try:
            data = await get_json(url, params=params)
        except Exception as exc:
            logger.warning("OSRM request failed %s -> %s: %s", origin, destination, exc)
            raise RouteFailed(str(exc)) from exc
        if not isinstance(data, dict):
            raise RouteFailed("unexpected OSRM payload")
        try:
            return parse_osrm_response(data)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Malformed OSRM payload %s -> %s: %s", origin, destination, exc)
            raise RouteFailed(f"malformed OSRM payload: {exc}") from exc
