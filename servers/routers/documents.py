"""
Routes for document uploads and pasted notes.
"""

from fastapi import APIRouter, File, Form, UploadFile

from ..models import NotesRequest
from ..services import DocumentService
from .responses import error_response

router = APIRouter(tags=["documents"])
document_service = DocumentService()


@router.post("/client/events/{event_id}/documents/upload")
@router.post("/events/{event_id}/documents/upload")
async def upload_document(
    event_id: int,
    document: UploadFile = File(...),
    document_type: str = Form("pdf"),
):
    """Parse an uploaded planning document."""
    try:
        content = await document.read()
        return await document_service.upload(
            event_id, content, document.filename or "document", document_type
        )
    except Exception as e:
        return error_response(e)


@router.post("/client/events/{event_id}/documents/parse-notes")
@router.post("/events/{event_id}/documents/parse-notes")
async def parse_notes(event_id: int, request: NotesRequest):
    """Parse free-text planning notes."""
    try:
        return await document_service.parse_notes(event_id, request.notes)
    except Exception as e:
        return error_response(e)
