"""
Map session API routes.

Each session is one user's fuel-station finder: create it with the
browser's position (or none), then drive it with filter, destination and
relocate calls. Every mutating call returns the fresh session snapshot.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from api.session_store import SessionEntry, store
from domain.models import Coordinate
from services.map_surface import RecordingMapSurface
from settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)


class PositionRequest(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class FilterRequest(BaseModel):
    brands: List[str] = []


class DestinationRequest(BaseModel):
    place_id: str


class SessionResponse(BaseModel):
    id: str
    snapshot: dict
    map: Optional[dict] = None


def _get_entry(session_id: str) -> SessionEntry:
    entry = store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return entry


def _response(entry: SessionEntry) -> SessionResponse:
    surface = entry.session.surface
    return SessionResponse(
        id=entry.id,
        snapshot=entry.session.snapshot().to_dict(list_limit=settings.VISIBLE_LIST_LIMIT),
        map=surface.to_dict() if isinstance(surface, RecordingMapSurface) else None,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(position: Optional[PositionRequest] = None):
    """Create a session and run the locate + search sequence."""
    entry = store.create(position.to_coordinate() if position else None)
    logger.info("Session %s created (client position: %s)", entry.id, bool(position))
    await entry.session.start()
    return _response(entry)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _response(_get_entry(session_id))


@router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str):
    if store.remove(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")


@router.put("/{session_id}/filter", response_model=SessionResponse)
async def set_filter(session_id: str, body: FilterRequest):
    entry = _get_entry(session_id)
    try:
        await entry.session.set_filter(body.brands)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _response(entry)


@router.post("/{session_id}/filter/toggle/{brand}", response_model=SessionResponse)
async def toggle_brand(session_id: str, brand: str):
    entry = _get_entry(session_id)
    try:
        await entry.session.toggle_brand(brand)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _response(entry)


@router.delete("/{session_id}/filter", response_model=SessionResponse)
async def clear_filter(session_id: str):
    entry = _get_entry(session_id)
    await entry.session.clear_filter()
    return _response(entry)


@router.post("/{session_id}/destination", response_model=SessionResponse)
async def choose_destination(session_id: str, body: DestinationRequest):
    entry = _get_entry(session_id)
    try:
        await entry.session.choose_destination(body.place_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Place not in the visible list")
    return _response(entry)


@router.delete("/{session_id}/route", response_model=SessionResponse)
async def clear_route(session_id: str):
    entry = _get_entry(session_id)
    entry.session.clear_route()
    return _response(entry)


@router.post("/{session_id}/relocate", response_model=SessionResponse)
async def relocate(session_id: str, position: Optional[PositionRequest] = None):
    """Re-run locate + search; a new client position replaces the old one."""
    entry = _get_entry(session_id)
    if position is not None:
        entry.geolocation.position = position.to_coordinate()
    await entry.session.relocate()
    return _response(entry)


@router.delete("/{session_id}/notices/{notice_id}", response_model=SessionResponse)
async def dismiss_notice(session_id: str, notice_id: int):
    entry = _get_entry(session_id)
    if not entry.session.dismiss_notice(notice_id):
        raise HTTPException(status_code=404, detail="Notice not found")
    return _response(entry)


@router.get("/{session_id}/map", response_class=HTMLResponse)
async def session_map(session_id: str):
    """Render the session's current map overlays as a standalone HTML page."""
    entry = _get_entry(session_id)
    surface = entry.session.surface
    if not isinstance(surface, RecordingMapSurface):
        raise HTTPException(status_code=409, detail="Session map cannot be rendered")
    return HTMLResponse(surface.render_html())
