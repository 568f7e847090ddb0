"""
Geolocation providers.

The browser is the natural source of a user's position, so the usual
provider is FixedGeolocation holding whatever the client reported (or
nothing, which reads as "permission denied"). IpGeolocation is a coarse
server-side fallback.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from domain.errors import LocationUnavailable
from domain.models import Coordinate
from services.http_client import get_json
from settings import settings

logger = logging.getLogger(__name__)


class GeolocationProvider(Protocol):
    async def get_current_position(self) -> Coordinate:
        ...


class FixedGeolocation:
    def __init__(self, position: Optional[Coordinate] = None) -> None:
        self.position = position

    async def get_current_position(self) -> Coordinate:
        if self.position is None:
            raise LocationUnavailable("position not shared by client")
        return self.position


class IpGeolocation:
    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url or settings.IP_GEOLOCATION_URL

    async def get_current_position(self) -> Coordinate:
        try:
            data = await get_json(self.url)
        except Exception as exc:
            logger.warning("IP geolocation lookup failed: %s", exc)
            raise LocationUnavailable(str(exc)) from exc
        if not isinstance(data, dict):
            raise LocationUnavailable("unexpected IP geolocation payload")
        lat = data.get("lat", data.get("latitude"))
        lon = data.get("lon", data.get("longitude"))
        if lat is None or lon is None:
            raise LocationUnavailable("IP geolocation response has no coordinates")
        try:
            return Coordinate(float(lat), float(lon))
        except (TypeError, ValueError) as exc:
            raise LocationUnavailable(str(exc)) from exc
