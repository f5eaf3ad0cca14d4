"""
Routes for the planning, music ideas and timeline forms.

Each form is served under the client routes (saved with PUT) and the
admin routes (saved with POST).
"""

from fastapi import APIRouter

from djplanner.models import TimelineFormData

from ..models import MusicIdeasSaveRequest, PlanningSaveRequest, TimelineSaveRequest
from ..services import FormService
from .responses import error_response

router = APIRouter(tags=["forms"])
form_service = FormService()


@router.get("/client/events/{event_id}/planning")
@router.get("/events/{event_id}/planning")
async def get_planning(event_id: int):
    try:
        return form_service.get_planning(event_id)
    except Exception as e:
        return error_response(e)


@router.put("/client/events/{event_id}/planning")
@router.post("/events/{event_id}/planning")
async def save_planning(event_id: int, request: PlanningSaveRequest):
    try:
        return form_service.save_planning(event_id, request.planning_data, request.notes)
    except Exception as e:
        return error_response(e)


@router.get("/client/events/{event_id}/music-ideas")
@router.get("/events/{event_id}/music-ideas")
async def get_music_ideas(event_id: int):
    try:
        return form_service.get_music_ideas(event_id)
    except Exception as e:
        return error_response(e)


@router.put("/client/events/{event_id}/music-ideas")
@router.post("/events/{event_id}/music-ideas")
async def save_music_ideas(event_id: int, request: MusicIdeasSaveRequest):
    try:
        return form_service.save_music_ideas(event_id, request.music_ideas, request.notes)
    except Exception as e:
        return error_response(e)


@router.get("/client/events/{event_id}/timeline")
@router.get("/events/{event_id}/timeline")
async def get_timeline(event_id: int):
    try:
        return form_service.get_timeline(event_id)
    except Exception as e:
        return error_response(e)


@router.put("/client/events/{event_id}/timeline")
@router.post("/events/{event_id}/timeline")
async def save_timeline(event_id: int, request: TimelineSaveRequest):
    try:
        timeline = TimelineFormData(timeline_items=request.timeline_items)
        return form_service.save_timeline(event_id, timeline, request.notes)
    except Exception as e:
        return error_response(e)
