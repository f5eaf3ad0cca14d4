"""
Pydantic models for API requests.
"""

from pydantic import BaseModel
from typing import List, Optional

from djplanner.models import MusicIdeasFormData, PlanningFormData, TimelineItem


class EventCreateRequest(BaseModel):
    """Request to register an event."""
    name: str
    dj_calendar_link: Optional[str] = None


class AnswerRequest(BaseModel):
    """Answer to the question at one chat step."""
    step: int
    answer: str


class NotesRequest(BaseModel):
    """Free-text notes to run through the parser."""
    event_id: Optional[int] = None
    notes: str = ""


class PlanningSaveRequest(BaseModel):
    """Planning form save. planning_data accepts camelCase keys."""
    planning_data: PlanningFormData = PlanningFormData()
    notes: str = ""


class MusicIdeasSaveRequest(BaseModel):
    music_ideas: MusicIdeasFormData = MusicIdeasFormData()
    notes: str = ""


class TimelineSaveRequest(BaseModel):
    timeline_items: List[TimelineItem] = []
    notes: str = ""
