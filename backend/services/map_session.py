"""
Map session: the aggregate that owns one user's fuel-station finder state.

Lifecycle: locate (bounded by a timeout, falling back to an approximate
center) -> search nearby stations -> filter -> reconcile markers ->
pick a destination -> route.

All state lives on the MapSession instance and changes only through its
public coroutines. Each logical transition (catalog replaced, filter
changed, location changed) recomputes the visible set exactly once in
_on_state_changed and feeds it to the marker reconciler and the route
controller, in that order.

Provider failures are never fatal. They become soft notices:
- location unavailable: search around the last known or default center
- search failed: keep the previous catalog
- route failed: keep the previous route
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Awaitable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from domain.errors import LocationUnavailable, RouteFailed, SearchFailed, StaleResultDiscarded
from domain.models import (
    BrandTag,
    Coordinate,
    Notice,
    NoticeKind,
    Place,
    RankedPlace,
    Route,
    SessionSnapshot,
)
from services.brands import classify, configured_brands
from services.filter_engine import FilterEngine
from services.geolocation import GeolocationProvider
from services.map_surface import MapSurface, RecordingMapSurface
from services.marker_reconciler import MarkerReconciler
from services.place_catalog import PlaceCatalog
from services.places_client import PlacesProvider
from services.places_types import PlaceResult
from services.route_controller import DirectionsProvider, RouteController
from services.sequencing import LatestRequestGate
from settings import settings

logger = logging.getLogger(__name__)

NOTICE_MESSAGES = {
    NoticeKind.APPROXIMATE_LOCATION: "Using approximate location",
    NoticeKind.SEARCH_FAILED: "Could not load nearby stations; try relocating",
    NoticeKind.ROUTE_FAILED: "Could not compute a route to the selected station",
}


class MapSession:
    def __init__(
        self,
        geolocation: GeolocationProvider,
        places: PlacesProvider,
        directions: DirectionsProvider,
        surface: Optional[MapSurface] = None,
        *,
        brands: Optional[Sequence[BrandTag]] = None,
        default_center: Optional[Coordinate] = None,
        geolocation_timeout: Optional[float] = None,
        search_radius_m: Optional[float] = None,
        search_category: Optional[str] = None,
        nearby_radius_km: Optional[float] = None,
    ) -> None:
        self._geolocation = geolocation
        self._places = places
        self._brands = list(brands) if brands is not None else configured_brands()
        self._default_center = default_center or Coordinate(
            settings.DEFAULT_CENTER_LAT, settings.DEFAULT_CENTER_LNG
        )
        self._geolocation_timeout = (
            geolocation_timeout if geolocation_timeout is not None else settings.GEOLOCATION_TIMEOUT_SEC
        )
        self._search_radius_m = search_radius_m if search_radius_m is not None else settings.SEARCH_RADIUS_M
        self._search_category = search_category or settings.SEARCH_CATEGORY
        self._nearby_radius_km = (
            nearby_radius_km if nearby_radius_km is not None else settings.NEARBY_RADIUS_KM
        )

        self._surface = surface or RecordingMapSurface(self._default_center, settings.DEFAULT_ZOOM)
        self._catalog = PlaceCatalog()
        self._filter = FilterEngine()
        self._routes = RouteController(directions, on_change=self._sync_route_overlay)
        self._markers = MarkerReconciler(self._surface, on_select=self._on_marker_click)
        self._search_gate = LatestRequestGate("places search")

        self._visible: List[RankedPlace] = []
        self._search_center: Optional[Coordinate] = None
        self._approximate = False
        self._notices: Dict[int, Notice] = {}
        self._notice_ids = itertools.count(1)
        self._shown_destination: Optional[Place] = None
        self._shown_route: Optional[Route] = None
        self._click_tasks: Set["asyncio.Task[None]"] = set()
        self._closed = False

    @property
    def surface(self) -> MapSurface:
        return self._surface

    @property
    def brands(self) -> List[BrandTag]:
        return list(self._brands)

    # --- lifecycle ---

    async def start(self) -> None:
        """
        Locate the user, then search stations around the resolved center.

        With a real fix the route recompute and the places search run side by
        side; a slow directions call never holds back the catalog.
        """
        center, located = await self._locate()
        if located:
            await asyncio.gather(
                self._guard_route(self._routes.set_my_location(center)),
                self._search(center),
            )
        else:
            await self._search(center)

    async def relocate(self) -> None:
        await self.start()

    def close(self) -> None:
        self._closed = True
        self._search_gate.invalidate()
        self._routes.cancel_pending()
        for task in list(self._click_tasks):
            task.cancel()
        self._click_tasks.clear()
        self._markers.clear()
        self._surface.clear_route()
        self._surface.clear_destination_marker()
        self._shown_route = None
        self._shown_destination = None

    # --- UI operations ---

    async def set_filter(self, tags: Iterable[Union[BrandTag, str]]) -> None:
        self._filter.set_selection(tags)
        await self._on_state_changed()

    async def toggle_brand(self, tag: Union[BrandTag, str]) -> None:
        self._filter.toggle(tag)
        await self._on_state_changed()

    async def clear_filter(self) -> None:
        self._filter.clear()
        await self._on_state_changed()

    async def choose_destination(self, place: Union[Place, str]) -> None:
        if isinstance(place, str):
            place = self._visible_place(place)
        await self._guard_route(self._routes.select_destination(place))

    def clear_route(self) -> None:
        self._routes.clear_route()

    def dismiss_notice(self, notice_id: int) -> bool:
        return self._notices.pop(notice_id, None) is not None

    def snapshot(self) -> SessionSnapshot:
        selection = self._filter.selection
        return SessionSnapshot(
            my_location=self._routes.my_location,
            search_center=self._search_center,
            approximate_location=self._approximate,
            selection=tuple(b for b in BrandTag if b in selection),
            visible=tuple(self._visible),
            destination=self._routes.destination,
            route=self._routes.route,
            route_state=self._routes.state,
            nearby_count=self._routes.nearby_count(self._visible, self._nearby_radius_km),
            notices=tuple(self._notices.values()),
        )

    # --- internals ---

    async def _locate(self) -> Tuple[Coordinate, bool]:
        try:
            position = await asyncio.wait_for(
                self._geolocation.get_current_position(), timeout=self._geolocation_timeout
            )
        except (LocationUnavailable, asyncio.TimeoutError) as exc:
            fallback = self._routes.my_location or self._default_center
            logger.warning("Location unavailable (%s); using %s", str(exc) or "timeout", fallback)
            self._approximate = True
            self._add_notice(NoticeKind.APPROXIMATE_LOCATION)
            return fallback, False

        logger.info("Located at %.5f, %.5f", position.lat, position.lng)
        self._approximate = False
        self._dismiss_kind(NoticeKind.APPROXIMATE_LOCATION)
        self._surface.set_view(position, settings.LOCATED_ZOOM)
        self._surface.set_location_marker(position)
        return position, True

    async def _search(self, center: Coordinate) -> None:
        self._search_center = center
        try:
            results = await self._search_gate.run(
                lambda: self._places.search(center, self._search_radius_m, self._search_category)
            )
        except StaleResultDiscarded:
            return
        except SearchFailed as exc:
            logger.warning("Places search around %s failed: %s", center, exc)
            self._add_notice(NoticeKind.SEARCH_FAILED)
            # previous catalog, re-ranked around the current location
            await self._on_state_changed()
            return

        self._catalog.replace(self._places_from_results(results))
        self._dismiss_kind(NoticeKind.SEARCH_FAILED)
        logger.info("Catalog replaced: %d stations around %s", len(self._catalog), center)
        await self._on_state_changed()

    async def _on_state_changed(self) -> None:
        if self._closed:
            return
        ranked = self._catalog.with_distances(self._routes.my_location)
        visible = self._filter.visible(ranked)
        self._visible = visible
        self._markers.reconcile(visible)
        await self._guard_route(self._routes.on_destination_missing_from_visible(visible))

    async def _guard_route(self, op: Awaitable[None]) -> None:
        try:
            await op
        except RouteFailed:
            self._add_notice(NoticeKind.ROUTE_FAILED)

    def _places_from_results(self, results: List[PlaceResult]) -> List[Place]:
        places: List[Place] = []
        seen = set()
        for r in results:
            if not r.provider_id or r.provider_id in seen:
                continue
            seen.add(r.provider_id)
            places.append(
                Place(
                    id=r.provider_id,
                    name=r.name,
                    location=r.location,
                    brand=classify(r.name, self._brands),
                )
            )
        return places

    def _visible_place(self, place_id: str) -> Place:
        for ranked in self._visible:
            if ranked.id == place_id:
                return ranked.place
        raise KeyError(place_id)

    def _on_marker_click(self, place: Place) -> "asyncio.Task[None]":
        task = asyncio.ensure_future(self.choose_destination(place))
        self._click_tasks.add(task)
        task.add_done_callback(self._click_tasks.discard)
        return task

    def _sync_route_overlay(self) -> None:
        if self._closed:
            return
        destination = self._routes.destination
        if destination != self._shown_destination:
            if destination is None or destination.location is None:
                self._surface.clear_destination_marker()
            else:
                self._surface.set_destination_marker(destination.location, destination.name)
                self._surface.pan_to(destination.location)
            self._shown_destination = destination

        route = self._routes.route
        if route != self._shown_route:
            if route is None:
                self._surface.clear_route()
            else:
                self._surface.show_route(route)
                self._dismiss_kind(NoticeKind.ROUTE_FAILED)
            self._shown_route = route

    def _add_notice(self, kind: NoticeKind) -> Notice:
        self._dismiss_kind(kind)
        notice = Notice(id=next(self._notice_ids), kind=kind, message=NOTICE_MESSAGES[kind])
        self._notices[notice.id] = notice
        return notice

    def _dismiss_kind(self, kind: NoticeKind) -> None:
        for notice_id in [n.id for n in self._notices.values() if n.kind == kind]:
            del self._notices[notice_id]
