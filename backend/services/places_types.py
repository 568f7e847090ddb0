from dataclasses import dataclass
from typing import Optional

from domain.models import Coordinate


@dataclass
class PlaceResult:
    provider: str  # e.g. "osm"
    provider_id: str  # provider-specific place id, stable for the session
    name: str
    location: Optional[Coordinate]  # None when the provider gave no usable coordinates
    raw: Optional[dict] = None
