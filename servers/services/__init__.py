"""Business logic services for the DJ Planner backend."""

from .chat_progress_service import ChatProgressService
from .document_service import DocumentService
from .form_service import FormService

__all__ = [
    "ChatProgressService",
    "DocumentService",
    "FormService"
]
