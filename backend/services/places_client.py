"""
Nearby fuel-station search using the OpenStreetMap Overpass API.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from domain.errors import SearchFailed
from domain.models import Coordinate
from services.http_client import post_json
from services.places_types import PlaceResult
from settings import settings

# Overpass tag filters per search category.
CATEGORY_FILTERS: Dict[str, str] = {
    "gas_station": '["amenity"="fuel"]',
    "fuel": '["amenity"="fuel"]',
    "charging_station": '["amenity"="charging_station"]',
}


class PlacesProvider(Protocol):
    async def search(
        self, center: Coordinate, radius_meters: float, category: str
    ) -> List[PlaceResult]:
        ...


def format_place_display_name(tags: dict, default_name: Optional[str] = None) -> str:
    """
    Produce a short display name for a station from its OSM tags.

    Rules:
    - Prefer 'name'; fall back to 'brand', then 'operator'.
    - Keep it relatively short (< 60 chars); truncate with '…' if necessary.
    - Use the configured default label when nothing usable is tagged.
    """
    for key in ("name", "brand", "operator"):
        value = (tags.get(key) or "").strip()
        if value:
            if len(value) > 60:
                value = value[:57] + "…"
            return value
    return default_name if default_name is not None else settings.DEFAULT_PLACE_NAME


def build_overpass_around_ql(center: Coordinate, radius_meters: float, tag_filter: str, timeout_s: int) -> str:
    around = f"(around:{radius_meters:.0f},{center.lat:.6f},{center.lng:.6f})"
    return (
        f"[out:json][timeout:{timeout_s}];"
        f"("
        f"node{tag_filter}{around};"
        f"way{tag_filter}{around};"
        f");"
        f"out center;"
    )


def _element_location(item: dict) -> Optional[Coordinate]:
    # nodes carry lat/lon directly; ways carry a "center" with "out center"
    lat = item.get("lat")
    lon = item.get("lon")
    if lat is None or lon is None:
        center = item.get("center") or {}
        lat = center.get("lat")
        lon = center.get("lon")
    if lat is None or lon is None:
        return None
    try:
        return Coordinate(float(lat), float(lon))
    except (TypeError, ValueError):
        return None


class OverpassPlacesClient:
    def __init__(self, base_url: Optional[str] = None, timeout_s: Optional[float] = None) -> None:
        self.provider = "osm"
        self.base_url = base_url or settings.OVERPASS_URL
        self.timeout_s = timeout_s if timeout_s is not None else settings.HTTP_TIMEOUT_SEC
        self.logger = logging.getLogger(__name__)

    def parse_elements(self, payload: dict) -> List[PlaceResult]:
        results: List[PlaceResult] = []
        for item in payload.get("elements") or []:
            if not isinstance(item, dict):
                continue
            tags = item.get("tags") or {}
            results.append(
                PlaceResult(
                    provider=self.provider,
                    provider_id=f"{item.get('type', 'node')}/{item.get('id', '')}",
                    name=format_place_display_name(tags),
                    location=_element_location(item),
                    raw=item,
                )
            )
        return results

    async def search(
        self, center: Coordinate, radius_meters: float, category: str
    ) -> List[PlaceResult]:
        tag_filter = CATEGORY_FILTERS.get(category)
        if tag_filter is None:
            raise SearchFailed(f"unsupported place category: {category}")
        ql = build_overpass_around_ql(center, radius_meters, tag_filter, int(self.timeout_s))
        try:
            payload = await post_json(self.base_url, data={"data": ql}, timeout=self.timeout_s)
        except Exception as exc:
            self.logger.warning("Overpass search failed near %s: %s", center, exc)
            raise SearchFailed(str(exc)) from exc
        if not isinstance(payload, dict):
            raise SearchFailed("unexpected Overpass payload")

        try:
            results = self.parse_elements(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            self.logger.warning("Malformed Overpass payload near %s: %s", center, exc)
            raise SearchFailed(f"malformed Overpass payload: {exc}") from exc
        self.logger.debug(
            "OverpassPlacesClient.search: lat=%.6f lng=%.6f radius_m=%.1f category=%s got %d results",
            center.lat,
            center.lng,
            radius_meters,
            category,
            len(results),
        )
        return results
