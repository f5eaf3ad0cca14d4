"""
Routes for the client planning chat.
"""

from fastapi import APIRouter, Header

from ..models import AnswerRequest
from ..services import ChatProgressService
from .responses import error_response

router = APIRouter(prefix="/client/events/{event_id}/chat-progress", tags=["chat"])
chat_progress_service = ChatProgressService()


@router.get("")
async def show_chat_progress(event_id: int, x_user_id: int = Header(1)):
    """Get or create chat progress for the calling user."""
    try:
        return chat_progress_service.show(event_id, x_user_id)
    except Exception as e:
        return error_response(e)


@router.post("")
async def store_answer(event_id: int, request: AnswerRequest, x_user_id: int = Header(1)):
    """Save an answer and move to the next step."""
    try:
        return await chat_progress_service.store(event_id, x_user_id, request.step, request.answer)
    except Exception as e:
        return error_response(e)


@router.post("/fill-forms")
async def fill_forms(event_id: int, x_user_id: int = Header(1)):
    """Map a completed chat's answers into the three forms."""
    try:
        return await chat_progress_service.fill_forms(event_id, x_user_id)
    except Exception as e:
        return error_response(e)
