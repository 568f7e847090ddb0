"""
Keeps rendered place markers in 1:1 correspondence with the visible set.

Only this module creates or destroys place markers. Markers whose place is
still visible are left alone, so reconciling the same visible set twice is a
no-op.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Set

from domain.models import MarkerSpec, Place, RankedPlace
from services.map_surface import FUEL_ICON_URL, MapSurface, MarkerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    added: int
    removed: int


class MarkerReconciler:
    def __init__(
        self,
        surface: MapSurface,
        on_select: Callable[[Place], Any],
        icon: str = FUEL_ICON_URL,
    ) -> None:
        self._surface = surface
        self._on_select = on_select
        self._icon = icon
        self._handles: Dict[str, MarkerHandle] = {}

    @property
    def live_ids(self) -> Set[str]:
        return set(self._handles)

    def reconcile(self, visible: List[RankedPlace]) -> ReconcileResult:
        wanted = {r.id for r in visible}

        removed = 0
        for place_id in [pid for pid in self._handles if pid not in wanted]:
            self._surface.destroy_marker(self._handles.pop(place_id))
            removed += 1

        added = 0
        for ranked in visible:
            if ranked.id in self._handles or ranked.location is None:
                continue
            spec = MarkerSpec(
                place_id=ranked.id,
                position=ranked.location,
                title=ranked.name,
                icon=self._icon,
                on_click=self._click_handler(ranked.place),
            )
            self._handles[ranked.id] = self._surface.create_marker(spec)
            added += 1

        if added or removed:
            logger.debug(
                "MarkerReconciler.reconcile: +%d -%d (%d live)", added, removed, len(self._handles)
            )
        return ReconcileResult(added=added, removed=removed)

    def clear(self) -> None:
        for handle in self._handles.values():
            self._surface.destroy_marker(handle)
        self._handles.clear()

    def _click_handler(self, place: Place) -> Callable[[], Any]:
        def _on_click():
            return self._on_select(place)

        return _on_click
