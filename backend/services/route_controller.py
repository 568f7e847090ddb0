"""
Route controller: my location, current destination, and the latest route.

Route requests go through a LatestRequestGate, so when several requests
overlap only the most recently issued one may replace the route. A failed
recompute never clears a previously good route.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from domain.errors import RouteFailed, StaleResultDiscarded
from domain.models import Coordinate, DirectionsResult, Place, RankedPlace, Route, RouteState
from services.sequencing import LatestRequestGate

logger = logging.getLogger(__name__)


class DirectionsProvider(Protocol):
    async def route(
        self, origin: Coordinate, destination: Coordinate, mode: str = "driving"
    ) -> DirectionsResult:
        ...


class RouteController:
    def __init__(
        self,
        directions: DirectionsProvider,
        mode: str = "driving",
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._directions = directions
        self.mode = mode
        self._on_change = on_change
        self._gate = LatestRequestGate("route")
        self._my_location: Optional[Coordinate] = None
        self._destination: Optional[Place] = None
        self._route: Optional[Route] = None

    @property
    def my_location(self) -> Optional[Coordinate]:
        return self._my_location

    @property
    def destination(self) -> Optional[Place]:
        return self._destination

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def state(self) -> RouteState:
        if self._my_location is None:
            return RouteState.NO_LOCATION
        if self._destination is None:
            return RouteState.LOCATED
        if self._route is None:
            return RouteState.DESTINATION_CHOSEN
        return RouteState.ROUTE_READY

    async def set_my_location(self, location: Coordinate) -> None:
        self._my_location = location
        if self._destination is not None:
            await self._recompute()

    async def select_destination(self, place: Place) -> None:
        if place.location is None:
            raise ValueError(f"place {place.id!r} has no location")
        self._destination = place
        self._notify()
        if self._my_location is not None:
            await self._recompute()

    async def on_destination_missing_from_visible(self, visible: List[RankedPlace]) -> None:
        if self._destination is not None and any(r.id == self._destination.id for r in visible):
            return
        if visible:
            logger.info("Destination auto-selected: %s", visible[0].name)
            await self.select_destination(visible[0].place)
            return
        if self._destination is None and self._route is None:
            return
        logger.info("Visible set empty; clearing destination and route")
        self._destination = None
        self._route = None
        self._gate.invalidate()
        self._notify()

    def clear_route(self) -> None:
        self._route = None
        self._gate.invalidate()
        self._notify()

    def cancel_pending(self) -> None:
        """Drop whatever route request is in flight without touching state."""
        self._gate.invalidate()

    async def request_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """
        Ask the directions provider for a route and apply it if still current.

        Raises RouteFailed when the latest request fails (the previous route
        is kept) and StaleResultDiscarded when a newer request superseded it.
        """
        result = await self._gate.run(
            lambda: self._directions.route(origin, destination, mode=self.mode)
        )
        route = Route.from_directions(result)
        self._route = route
        logger.info("Route ready: %.1f km, %d min", route.distance_km, route.eta_minutes)
        self._notify()
        return route

    def nearby_count(self, visible: List[RankedPlace], radius_km: float) -> int:
        if self._my_location is None or not visible:
            return 0
        return sum(1 for r in visible if r.distance_km is not None and r.distance_km <= radius_km)

    async def _recompute(self) -> Optional[Route]:
        destination = self._destination
        if self._my_location is None or destination is None or destination.location is None:
            return None
        try:
            return await self.request_route(self._my_location, destination.location)
        except StaleResultDiscarded:
            return None
        except RouteFailed as exc:
            logger.warning("Route to %s failed: %s", destination.id, exc)
            raise

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
