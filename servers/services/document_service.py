"""
Document and notes parsing business logic.
Turns uploaded planning documents and pasted notes into extracted data.
"""

import io
from typing import Dict

import PyPDF2
from PyPDF2.errors import PdfReadError
from docx import Document as DocxDocument

from djplanner.api_client import DOCUMENT_TYPES
from djplanner.exceptions import ParseError, ValidationError
from djplanner.extraction import ChatFormExtractor

from ..logging_config import get_logger
from .storage import get_database, require_event

logger = get_logger(__name__)


def extract_document_text(content: bytes, filename: str) -> str:
    """
    Plain text of an uploaded document.

    PDFs are read page by page and .docx files paragraph by paragraph;
    everything else must already be text (exported emails, notes).

    Raises:
        ParseError: the PDF could not be read
    """
    name = (filename or "").lower()

    if name.endswith('.pdf') or content.startswith(b"%PDF"):
        try:
            reader = PyPDF2.PdfReader(io.BytesIO(content))
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PdfReadError, ValueError, KeyError) as e:
            raise ParseError(f"Could not read PDF: {e}", source=filename)
        logger.debug(f"Read {len(pages)} PDF pages from {filename}")
        return '\n'.join(page for page in pages if page.strip())

    if name.endswith('.docx'):
        doc = DocxDocument(io.BytesIO(content))
        paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
        return '\n\n'.join(paragraphs)

    return content.decode('utf-8', errors='ignore')


class DocumentService:
    """Service for document uploads and pasted notes."""

    def __init__(self, extractor: ChatFormExtractor = None):
        self.extractor = extractor

    def _get_extractor(self) -> ChatFormExtractor:
        return self.extractor or ChatFormExtractor()

    async def upload(
        self, event_id: int, content: bytes, filename: str, document_type: str = "pdf"
    ) -> Dict:
        """
        Parse an uploaded document.

        Returns:
            Dict with the parser's extraction under ``parsed_data``
        """
        require_event(get_database(), event_id)

        if document_type not in DOCUMENT_TYPES:
            raise ValidationError(f"Unsupported document type: {document_type}", field="document_type")

        text = extract_document_text(content, filename)
        if not text.strip():
            raise ParseError("Document contains no readable text", source=filename)

        logger.info(f"Parsing {filename} ({document_type}, {len(text)} chars) for event {event_id}")
        extracted = await self._get_extractor().extract_from_text(text)

        return {
            "success": True,
            "message": "Document processed",
            "filename": filename,
            "document_type": document_type,
            "parsed_data": extracted.model_dump(mode="json"),
        }

    async def parse_notes(self, event_id: int, notes: str) -> Dict:
        require_event(get_database(), event_id)

        if not notes or not notes.strip():
            raise ValidationError("Notes are required", field="notes")

        extracted = await self._get_extractor().extract_from_text(notes)
        return {"success": True, "data": extracted.model_dump(mode="json")}
