"""
API routes.

Endpoints:
- GET  `/sessions/{session_id}/map`: the Folium map document for the page's current scene.
- GET  `/api/sessions/{session_id}/scene`: long-poll for scene changes + notifications.
- POST `/api/sessions/{session_id}/gps`: the browser's one-shot geolocation outcome.
- GET  `/api/info`: the static "About This Website" text.
- GET  `/api/geo/distance`: distance + midpoint between two points.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from whereami.acquisition.ip_lookup import IpLocationClient
from whereami.acquisition.sensor import BrowserSensor, SensorAlreadySettled
from whereami.config.settings import get_settings
from whereami.core.geo import Coordinate, distance_km, midpoint
from whereami.display.folium_map import render_map_html
from whereami.domain.models import SensorReport
from whereami.page.session import PageSession, SessionRegistry

router = APIRouter()


@lru_cache
def _registry() -> SessionRegistry:
    return SessionRegistry(max_sessions=get_settings().sessions.max_sessions)


@lru_cache
def _ip_client() -> IpLocationClient:
    return IpLocationClient(get_settings())


def client_address(request: Request) -> str | None:
    """Best-effort visitor IP (honours `X-Forwarded-For` only when configured to)."""
    settings = get_settings()
    if settings.acquisition.ip_lookup.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def open_session(request: Request) -> PageSession:
    """Create, register and start a page session for this request."""
    session = PageSession(get_settings(), _ip_client())
    _registry().add(session)
    session.start(address=client_address(request))
    return session


def _session_or_404(session_id: str) -> PageSession:
    session = _registry().get(session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "SESSION_NOT_FOUND", "message": f"Unknown page session '{session_id}'"},
        )
    return session


@router.get("/sessions/{session_id}/map", response_class=HTMLResponse)
def get_map(session_id: str) -> HTMLResponse:
    """Render the page's current scene as a standalone map document."""
    session = _session_or_404(session_id)
    return HTMLResponse(render_map_html(session.scene, get_settings().map))


@router.get("/api/sessions/{session_id}/scene")
async def get_scene(
    session_id: str,
    after: int = Query(-1, description="Return as soon as the scene version exceeds this."),
    wait: float | None = Query(None, ge=0, le=60, description="Max seconds to wait for a change."),
) -> dict:
    """Return the page's scene, waiting up to `wait` seconds for a newer version."""
    session = _session_or_404(session_id)
    timeout = get_settings().sessions.scene_wait_seconds if wait is None else wait
    await session.wait_for_change(after, timeout)
    return session.snapshot()


@router.post("/api/sessions/{session_id}/gps")
async def post_gps(session_id: str, report: SensorReport) -> dict:
    """Settle the page's GPS sensor with the browser's fix or failure."""
    session = _session_or_404(session_id)
    sensor = session.sensor
    if not isinstance(sensor, BrowserSensor):
        raise HTTPException(
            status_code=409,
            detail={"code": "SENSOR_NOT_REMOTE", "message": "This page does not accept browser fixes"},
        )
    try:
        sensor.report(report)
    except SensorAlreadySettled as e:
        raise HTTPException(status_code=409, detail={"code": "ALREADY_REPORTED", "message": str(e)}) from e

    if session.gps_task is not None:
        await asyncio.wait({session.gps_task})
    return session.snapshot()


@router.get("/api/info")
def get_info() -> dict:
    """Return the static informational text shown by the info button."""
    map_settings = get_settings().map
    return {"title": map_settings.info_button_label, "text": map_settings.info_text}


@router.get("/api/geo/distance")
def get_distance(
    lat1: float = Query(..., ge=-90, le=90),
    lon1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lon2: float = Query(..., ge=-180, le=180),
) -> dict:
    """Return the great-circle distance and the (planar) midpoint between two points."""
    try:
        a = Coordinate(lat=lat1, lon=lon1)
        b = Coordinate(lat=lat2, lon=lon2)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    km = distance_km(a, b)
    mid = midpoint(a, b)
    return {
        "distance_km": km,
        "text": f"{km:.2f} km",
        "midpoint": {"lat": mid.lat, "lon": mid.lon},
    }
