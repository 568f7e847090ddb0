"""
In-process stand-ins for the geolocation, places and directions providers.

Each fake records its calls and can be held open with an asyncio.Event so
tests can decide the order in which overlapping requests resolve.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

from domain.errors import LocationUnavailable, RouteFailed, SearchFailed
from domain.models import BrandTag, Coordinate, DirectionsLeg, DirectionsResult, Place, RankedPlace
from services.places_types import PlaceResult

HOME = Coordinate(47.4979, 19.0402)


def north_of(origin: Coordinate, degrees: float) -> Coordinate:
    # 0.01 degree of latitude is about 1.1 km
    return Coordinate(origin.lat + degrees, origin.lng)


def result(pid: str, name: str, location: Optional[Coordinate]) -> PlaceResult:
    return PlaceResult(provider="fake", provider_id=pid, name=name, location=location)


def place(pid: str, name: str, location: Coordinate, brand: Optional[BrandTag] = None) -> Place:
    return Place(id=pid, name=name, location=location, brand=brand)


def ranked(pid: str, name: str, distance_km: Optional[float], brand: Optional[BrandTag] = None) -> RankedPlace:
    return RankedPlace(place=place(pid, name, north_of(HOME, 0.01), brand), distance_km=distance_km)


def default_results() -> List[PlaceResult]:
    return [
        result("p2", "OMV Budaörsi út", north_of(HOME, 0.03)),
        result("p1", "MOL Szeged Tesco", north_of(HOME, 0.01)),
        result("p3", "Family Market", north_of(HOME, 0.02)),
        result("p4", "Shell Hungária krt", north_of(HOME, 0.06)),
    ]


class FakeGeolocation:
    def __init__(self, position: Optional[Coordinate] = HOME, delay: float = 0.0) -> None:
        self.position = position
        self.delay = delay
        self.calls = 0

    async def get_current_position(self) -> Coordinate:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.position is None:
            raise LocationUnavailable("denied")
        return self.position


class FakePlaces:
    def __init__(self, results: Optional[List[PlaceResult]] = None) -> None:
        self.results = results if results is not None else default_results()
        self.fail = False
        self.calls: List[Tuple[Coordinate, float, str]] = []
        self.gates: List[asyncio.Event] = []

    async def search(self, center: Coordinate, radius_meters: float, category: str) -> List[PlaceResult]:
        self.calls.append((center, radius_meters, category))
        results = list(self.results)
        fail = self.fail
        if self.gates:
            await self.gates.pop(0).wait()
        if fail:
            raise SearchFailed("provider down")
        return results


class FakeDirections:
    def __init__(self) -> None:
        self.fail = False
        self.calls: List[Tuple[Coordinate, Coordinate, str]] = []
        self.results: Dict[Coordinate, Tuple[float, float]] = {}
        self.gates: Dict[Coordinate, asyncio.Event] = {}

    async def route(self, origin: Coordinate, destination: Coordinate, mode: str = "driving") -> DirectionsResult:
        self.calls.append((origin, destination, mode))
        fail = self.fail
        gate = self.gates.get(destination)
        if gate is not None:
            await gate.wait()
        if fail:
            raise RouteFailed("no route")
        meters, secs = self.results.get(destination, (1500.0, 240.0))
        return DirectionsResult(
            legs=(DirectionsLeg(distance_meters=meters, duration_seconds=secs),),
            polyline=(origin, destination),
        )
