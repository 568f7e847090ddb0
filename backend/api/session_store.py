"""
In-memory map session store.

Nothing is persisted. Sessions idle for longer than SESSION_IDLE_TTL_SEC are
evicted, and the least recently used one is evicted once SESSION_MAX_COUNT is
reached; eviction closes the session.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from domain.models import Coordinate
from services.directions_client import OsrmDirectionsClient
from services.geolocation import FixedGeolocation, IpGeolocation
from services.map_session import MapSession
from services.places_client import OverpassPlacesClient
from settings import settings

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    id: str
    session: MapSession
    geolocation: FixedGeolocation
    last_used: float = 0.0


class SessionStore:
    def __init__(
        self,
        places_factory: Callable[[], object] = OverpassPlacesClient,
        directions_factory: Callable[[], object] = OsrmDirectionsClient,
        idle_ttl_sec: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.places_factory = places_factory
        self.directions_factory = directions_factory
        self.idle_ttl_sec = idle_ttl_sec if idle_ttl_sec is not None else settings.SESSION_IDLE_TTL_SEC
        self.max_sessions = max(1, max_sessions if max_sessions is not None else settings.SESSION_MAX_COUNT)
        self._clock = clock
        self._entries: Dict[str, SessionEntry] = {}

    def create(self, position: Optional[Coordinate] = None) -> SessionEntry:
        self.evict_expired()
        while len(self._entries) >= self.max_sessions:
            oldest = min(self._entries.values(), key=lambda e: e.last_used)
            logger.info("Session store full; evicting least recently used %s", oldest.id)
            self.remove(oldest.id)

        geolocation = FixedGeolocation(position)
        provider = geolocation
        if position is None and settings.IP_GEOLOCATION_ENABLED:
            provider = _ClientOrIpGeolocation(geolocation)
        session = MapSession(
            geolocation=provider,
            places=self.places_factory(),
            directions=self.directions_factory(),
        )
        entry = SessionEntry(
            id=uuid.uuid4().hex, session=session, geolocation=geolocation, last_used=self._clock()
        )
        self._entries[entry.id] = entry
        return entry

    def get(self, session_id: str) -> Optional[SessionEntry]:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        now = self._clock()
        if now - entry.last_used > self.idle_ttl_sec:
            logger.info("Session %s expired after %.0fs idle", session_id, now - entry.last_used)
            self.remove(session_id)
            return None
        entry.last_used = now
        return entry

    def remove(self, session_id: str) -> Optional[SessionEntry]:
        entry = self._entries.pop(session_id, None)
        if entry is not None:
            entry.session.close()
        return entry

    def evict_expired(self) -> int:
        now = self._clock()
        expired = [e.id for e in self._entries.values() if now - e.last_used > self.idle_ttl_sec]
        for session_id in expired:
            self.remove(session_id)
        if expired:
            logger.info("Evicted %d idle sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class _ClientOrIpGeolocation:
    """Prefer a client-reported position; otherwise ask the IP lookup service."""

    def __init__(self, client: FixedGeolocation) -> None:
        self.client = client
        self.ip = IpGeolocation()

    async def get_current_position(self) -> Coordinate:
        if self.client.position is not None:
            return self.client.position
        return await self.ip.get_current_position()


store = SessionStore()
