"""API routers for the DJ Planner backend."""

from .events import router as events_router
from .chat_progress import router as chat_progress_router
from .forms import router as forms_router
from .documents import router as documents_router

__all__ = [
    "events_router",
    "chat_progress_router",
    "forms_router",
    "documents_router"
]
