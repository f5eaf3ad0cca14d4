"""API models for the DJ Planner backend."""

from .api_models import (
    EventCreateRequest,
    AnswerRequest,
    NotesRequest,
    PlanningSaveRequest,
    MusicIdeasSaveRequest,
    TimelineSaveRequest
)

__all__ = [
    "EventCreateRequest",
    "AnswerRequest",
    "NotesRequest",
    "PlanningSaveRequest",
    "MusicIdeasSaveRequest",
    "TimelineSaveRequest"
]
