"""
Planning, music ideas and timeline form business logic.
Reads and writes the three per-event forms and computes their summaries.
"""

from typing import Dict, Optional

from pydantic import BaseModel

from djplanner.form_store import Domain, default_form
from djplanner.models import (
    MusicIdeasFormData,
    PlanningFormData,
    TimelineFormData,
)

from ..logging_config import get_logger
from .storage import get_database, require_event

logger = get_logger(__name__)

_FORM_MODELS = {
    Domain.PLANNING: PlanningFormData,
    Domain.MUSIC: MusicIdeasFormData,
    Domain.TIMELINE: TimelineFormData,
}


def completion_percentage(planning: PlanningFormData) -> int:
    """Share of planning fields holding something other than their default."""
    defaults = PlanningFormData()
    names = list(PlanningFormData.model_fields)
    filled = sum(1 for name in names if getattr(planning, name) != getattr(defaults, name))
    return round(filled * 100 / len(names))


class FormService:
    """Service for the per-event planning forms."""

    def load_form(self, event_id: int, domain: Domain):
        """Stored form and notes, or the all-empty default."""
        db = get_database()
        require_event(db, event_id)

        stored = db.get_form(event_id, domain.value)
        if stored is None:
            return default_form(domain), ""
        return _FORM_MODELS[domain].model_validate(stored["data"]), stored["notes"]

    def store_form(
        self, event_id: int, domain: Domain, form: BaseModel, notes: Optional[str] = None
    ) -> None:
        """Persist a form. ``notes=None`` keeps the notes already stored."""
        db = get_database()
        require_event(db, event_id)

        if notes is None:
            stored = db.get_form(event_id, domain.value)
            notes = stored["notes"] if stored else ""

        if domain is Domain.PLANNING:
            data = form.to_wire()
        else:
            data = form.model_dump()
        db.upsert_form(event_id, domain.value, data, notes)
        logger.info(f"Saved {domain.value} form for event {event_id}")

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def get_planning(self, event_id: int) -> Dict:
        planning, notes = self.load_form(event_id, Domain.PLANNING)
        return {
            "planning_data": planning.to_wire(),
            "notes": notes,
            "completion_percentage": completion_percentage(planning),
        }

    def save_planning(self, event_id: int, planning: PlanningFormData, notes: str = "") -> Dict:
        self.store_form(event_id, Domain.PLANNING, planning, notes)
        return {
            "success": True,
            "message": "Planning saved",
            "completion_percentage": completion_percentage(planning),
        }

    # ------------------------------------------------------------------
    # Music ideas
    # ------------------------------------------------------------------

    def get_music_ideas(self, event_id: int) -> Dict:
        music, notes = self.load_form(event_id, Domain.MUSIC)
        return {
            "music_ideas": music.model_dump(),
            "notes": notes,
            "total_songs": music.total_songs(),
        }

    def save_music_ideas(self, event_id: int, music: MusicIdeasFormData, notes: str = "") -> Dict:
        self.store_form(event_id, Domain.MUSIC, music, notes)
        return {"success": True, "message": "Music ideas saved", "total_songs": music.total_songs()}

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def get_timeline(self, event_id: int) -> Dict:
        timeline, notes = self.load_form(event_id, Domain.TIMELINE)
        return {
            "timeline_data": timeline.model_dump(),
            "notes": notes,
            "total_items": len(timeline.timeline_items),
        }

    def save_timeline(self, event_id: int, timeline: TimelineFormData, notes: str = "") -> Dict:
        self.store_form(event_id, Domain.TIMELINE, timeline, notes)
        return {
            "success": True,
            "message": "Timeline saved",
            "total_items": len(timeline.timeline_items),
        }
