"""
Routes for event registration.
"""

from fastapi import APIRouter

from ..models import EventCreateRequest
from ..services.storage import get_database, require_event
from .responses import error_response

router = APIRouter(tags=["events"])


@router.get("/events")
async def list_events():
    """List all events."""
    return {"events": get_database().list_events()}


@router.post("/events")
async def create_event(request: EventCreateRequest):
    """Register an event and the DJ's calendar link."""
    try:
        event_id = get_database().create_event(request.name, request.dj_calendar_link)
        return {"success": True, "event_id": event_id}
    except Exception as e:
        return error_response(e)


@router.get("/events/{event_id}")
async def get_event(event_id: int):
    try:
        return require_event(get_database(), event_id)
    except Exception as e:
        return error_response(e)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "DJ Planner"}
