"""
Core domain models for the fuel-station finder.
These are framework-agnostic and can be used across all services.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple


def _round_half_up(value: float, decimals: int = 0) -> float:
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


class BrandTag(str, Enum):
    """
    Known fuel brands, in canonical order.

    The order matters: brand classification returns the first brand whose
    name occurs in a place name, so "Shell OMV" is tagged SHELL.
    """
    MOL = "MOL"
    SHELL = "Shell"
    OMV = "OMV"
    OPLUS = "Oplus"


class RouteState(str, Enum):
    """Where the route controller is in its lifecycle."""
    NO_LOCATION = "no_location"
    LOCATED = "located"
    DESTINATION_CHOSEN = "destination_chosen"
    ROUTE_READY = "route_ready"


class NoticeKind(str, Enum):
    """Soft, dismissible notices shown to the user."""
    APPROXIMATE_LOCATION = "approximate_location"
    SEARCH_FAILED = "search_failed"
    ROUTE_FAILED = "route_failed"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Place:
    """
    A discovered place (fuel station).

    `id` is provider-issued and stable for the session. `location` is None
    when the provider could not resolve coordinates; such places never reach
    the visible set.
    """
    id: str
    name: str
    location: Optional[Coordinate]
    brand: Optional[BrandTag] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location.to_dict() if self.location else None,
            "brand": self.brand.value if self.brand else None,
        }


@dataclass(frozen=True)
class RankedPlace:
    """A place plus its distance from the user, once the user's location is known."""
    place: Place
    distance_km: Optional[float] = None

    @property
    def id(self) -> str:
        return self.place.id

    @property
    def name(self) -> str:
        return self.place.name

    @property
    def brand(self) -> Optional[BrandTag]:
        return self.place.brand

    @property
    def location(self) -> Optional[Coordinate]:
        return self.place.location

    def to_dict(self) -> Dict[str, Any]:
        data = self.place.to_dict()
        data["distance_km"] = self.distance_km
        return data


@dataclass(frozen=True)
class DirectionsLeg:
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True)
class DirectionsResult:
    """Provider-neutral directions response."""
    legs: Tuple[DirectionsLeg, ...]
    polyline: Tuple[Coordinate, ...] = ()


@dataclass(frozen=True)
class Route:
    distance_km: float
    eta_minutes: int
    polyline: Tuple[Coordinate, ...] = ()

    @classmethod
    def from_directions(cls, result: DirectionsResult) -> "Route":
        meters = sum(leg.distance_meters or 0 for leg in result.legs)
        secs = sum(leg.duration_seconds or 0 for leg in result.legs)
        return cls(
            distance_km=_round_half_up(meters / 1000.0, 1),
            eta_minutes=int(_round_half_up(secs / 60.0)),
            polyline=result.polyline,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_km": self.distance_km,
            "eta_minutes": self.eta_minutes,
            "polyline": [c.to_dict() for c in self.polyline],
        }


@dataclass(frozen=True)
class Notice:
    id: int
    kind: NoticeKind
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class MarkerSpec:
    """What the map surface needs to draw one place marker."""
    place_id: str
    position: Coordinate
    title: str
    icon: str
    on_click: Optional[Callable[[], Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a map session for presentation layers."""
    my_location: Optional[Coordinate]
    search_center: Optional[Coordinate]
    approximate_location: bool
    selection: Tuple[BrandTag, ...]
    visible: Tuple[RankedPlace, ...]
    destination: Optional[Place]
    route: Optional[Route]
    route_state: RouteState
    nearby_count: int
    notices: Tuple[Notice, ...]

    @property
    def nearest(self) -> Optional[RankedPlace]:
        return self.visible[0] if self.visible else None

    def to_dict(self, list_limit: Optional[int] = None) -> Dict[str, Any]:
        visible: List[RankedPlace] = list(self.visible)
        if list_limit is not None:
            visible = visible[:list_limit]
        nearest = self.nearest
        return {
            "my_location": self.my_location.to_dict() if self.my_location else None,
            "search_center": self.search_center.to_dict() if self.search_center else None,
            "approximate_location": self.approximate_location,
            "selection": [b.value for b in self.selection],
            "visible": [p.to_dict() for p in visible],
            "visible_total": len(self.visible),
            "nearest": nearest.to_dict() if nearest else None,
            "destination": self.destination.to_dict() if self.destination else None,
            "route": self.route.to_dict() if self.route else None,
            "route_state": self.route_state.value,
            "nearby_count": self.nearby_count,
            "notices": [n.to_dict() for n in self.notices],
        }
