"""
Snapshot of the places found by the most recent search.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from domain.models import Coordinate, Place, RankedPlace
from services.geo import rounded_distance_km

logger = logging.getLogger(__name__)


class PlaceCatalog:
    """Holds the latest search results. Each search replaces the catalog wholesale."""

    def __init__(self) -> None:
        self._places: Tuple[Place, ...] = ()

    @property
    def places(self) -> Tuple[Place, ...]:
        return self._places

    def __len__(self) -> int:
        return len(self._places)

    def replace(self, places: Iterable[Place]) -> None:
        self._places = tuple(places)
        logger.debug("PlaceCatalog.replace: %d places", len(self._places))

    def with_distances(self, origin: Optional[Coordinate]) -> List[RankedPlace]:
        """
        Project the catalog into RankedPlace entries.

        Places without coordinates are dropped. With an origin the result is
        sorted by ascending distance (ties keep provider order); without one,
        provider order is kept and distances are None.
        """
        located = [p for p in self._places if p.location is not None]
        if origin is None:
            return [RankedPlace(place=p) for p in located]
        ranked = [
            RankedPlace(place=p, distance_km=rounded_distance_km(origin, p.location))
            for p in located
        ]
        ranked.sort(key=lambda r: r.distance_km)
        return ranked
