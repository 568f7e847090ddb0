"""
Map rendering surface.

MapSurface is the seam between the session and whatever draws the map.
RecordingMapSurface keeps the current overlay state in memory so the API
can hand it to a browser as JSON, and can render it to a standalone folium
HTML page.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import folium

from domain.models import Coordinate, MarkerSpec, Route

logger = logging.getLogger(__name__)

FUEL_ICON_URL = "https://maps.gstatic.com/mapfiles/ms2/micons/gas.png"
FLAG_ICON_URL = "https://maps.gstatic.com/mapfiles/ms2/micons/flag.png"
ROUTE_COLOR = "#6c5ce7"
ROUTE_WEIGHT = 6
ROUTE_OPACITY = 0.95
YOU_FILL_COLOR = "#10b981"
YOU_STROKE_COLOR = "#0d946a"


@dataclass(frozen=True)
class MarkerHandle:
    """Opaque reference to one rendered marker."""
    handle_id: int
    place_id: str


class MapSurface:
    """Interface of the map rendering capability."""

    def create_marker(self, spec: MarkerSpec) -> MarkerHandle:
        raise NotImplementedError

    def destroy_marker(self, handle: MarkerHandle) -> None:
        raise NotImplementedError

    def set_view(self, center: Coordinate, zoom: Optional[int] = None) -> None:
        raise NotImplementedError

    def pan_to(self, center: Coordinate) -> None:
        raise NotImplementedError

    def set_location_marker(self, position: Coordinate) -> None:
        raise NotImplementedError

    def set_destination_marker(self, position: Coordinate, title: str) -> None:
        raise NotImplementedError

    def clear_destination_marker(self) -> None:
        raise NotImplementedError

    def show_route(self, route: Route) -> None:
        raise NotImplementedError

    def clear_route(self) -> None:
        raise NotImplementedError


class RecordingMapSurface(MapSurface):
    def __init__(self, center: Coordinate, zoom: int = 12) -> None:
        self.center = center
        self.zoom = zoom
        self.markers: Dict[int, MarkerSpec] = {}
        self.location_marker: Optional[Coordinate] = None
        self.destination_marker: Optional[tuple] = None
        self.route: Optional[Route] = None
        self.created_count = 0
        self.destroyed_count = 0
        self._ids = itertools.count(1)

    def create_marker(self, spec: MarkerSpec) -> MarkerHandle:
        handle = MarkerHandle(handle_id=next(self._ids), place_id=spec.place_id)
        self.markers[handle.handle_id] = spec
        self.created_count += 1
        return handle

    def destroy_marker(self, handle: MarkerHandle) -> None:
        if self.markers.pop(handle.handle_id, None) is not None:
            self.destroyed_count += 1

    def click(self, place_id: str):
        """Simulate a click on the marker for `place_id`; returns the handler's result."""
        for spec in self.markers.values():
            if spec.place_id == place_id and spec.on_click is not None:
                return spec.on_click()
        raise KeyError(place_id)

    def set_view(self, center: Coordinate, zoom: Optional[int] = None) -> None:
        self.center = center
        if zoom is not None:
            self.zoom = zoom

    def pan_to(self, center: Coordinate) -> None:
        self.center = center

    def set_location_marker(self, position: Coordinate) -> None:
        self.location_marker = position

    def set_destination_marker(self, position: Coordinate, title: str) -> None:
        self.destination_marker = (position, title)

    def clear_destination_marker(self) -> None:
        self.destination_marker = None

    def show_route(self, route: Route) -> None:
        self.route = route

    def clear_route(self) -> None:
        self.route = None

    def to_dict(self) -> dict:
        destination = None
        if self.destination_marker is not None:
            pos, title = self.destination_marker
            destination = {"position": pos.to_dict(), "title": title}
        return {
            "center": self.center.to_dict(),
            "zoom": self.zoom,
            "markers": [
                {
                    "place_id": spec.place_id,
                    "position": spec.position.to_dict(),
                    "title": spec.title,
                    "icon": spec.icon,
                }
                for spec in self.markers.values()
            ],
            "location_marker": self.location_marker.to_dict() if self.location_marker else None,
            "destination_marker": destination,
            "route_polyline": [c.to_dict() for c in self.route.polyline] if self.route else [],
        }

    def render_html(self) -> str:
        """Render the current overlay state as a standalone folium map."""
        fmap = folium.Map(
            location=[self.center.lat, self.center.lng],
            zoom_start=self.zoom,
            tiles="OpenStreetMap",
        )
        for spec in self.markers.values():
            folium.Marker(
                location=[spec.position.lat, spec.position.lng],
                tooltip=spec.title,
                icon=folium.CustomIcon(spec.icon, icon_size=(32, 32)),
            ).add_to(fmap)
        if self.location_marker is not None:
            folium.CircleMarker(
                location=[self.location_marker.lat, self.location_marker.lng],
                radius=8,
                color=YOU_STROKE_COLOR,
                fill=True,
                fill_color=YOU_FILL_COLOR,
                fill_opacity=1.0,
                tooltip="Saját helyzet",
            ).add_to(fmap)
        if self.destination_marker is not None:
            pos, title = self.destination_marker
            folium.Marker(
                location=[pos.lat, pos.lng],
                tooltip=title,
                icon=folium.CustomIcon(FLAG_ICON_URL, icon_size=(32, 32)),
            ).add_to(fmap)
        if self.route is not None and len(self.route.polyline) >= 2:
            points: List[List[float]] = [[c.lat, c.lng] for c in self.route.polyline]
            folium.PolyLine(
                points,
                color=ROUTE_COLOR,
                weight=ROUTE_WEIGHT,
                opacity=ROUTE_OPACITY,
            ).add_to(fmap)
        logger.debug("RecordingMapSurface.render_html: %d markers", len(self.markers))
        return fmap.get_root().render()
