"""
Async HTTP client for the planning backend.

Wraps the chat-progress, document and per-domain form endpoints. Every
failure surfaces as a typed PlannerError: APIError for error statuses,
APIConnectionError for network problems and timeouts, ParseError for parse
responses without extracted data.
"""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from .config import config
from .exceptions import APIConnectionError, APIError, ParseError, ValidationError
from .logging_config import get_logger
from .models import (
    AnswerResponse,
    ChatProgressResponse,
    ExtractedData,
    MusicIdeasFormData,
    MusicIdeasResponse,
    PlanningFormData,
    PlanningResponse,
    TimelineFormData,
    TimelineResponse,
)

logger = get_logger(__name__)

DOCUMENT_TYPES = ("pdf", "email", "note")


def unwrap_envelope(payload: Any) -> Any:
    """Strip a ``{"data": {...}}`` envelope if there is one."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


class PlannerAPIClient:
    """
    Client for one backend.

    Use as an async context manager, or call ``close()`` when done.
    ``client_scope`` selects the client routes (``/client/events/...``, saves
    with PUT) over the admin routes (``/events/...``, saves with POST).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        client_scope: bool = True,
        timeout: Optional[float] = None,
        user_id: Optional[int] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = (base_url or config.api_url).rstrip("/")
        self.token = token if token is not None else config.api_token
        self.client_scope = client_scope
        self.timeout = timeout or config.request_timeout
        self.user_id = user_id
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.user_id is not None:
            headers["X-User-Id"] = str(self.user_id)
        return headers

    def _event_prefix(self, event_id: int) -> str:
        if self.client_scope:
            return f"/client/events/{event_id}"
        return f"/events/{event_id}"

    @property
    def _save_method(self) -> str:
        return "PUT" if self.client_scope else "POST"

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            async with self._get_session().request(
                method, url, headers=self._headers(), **kwargs
            ) as response:
                body = await response.text()
                try:
                    payload = json.loads(body) if body else {}
                except json.JSONDecodeError:
                    payload = {"error": body}

                if response.status >= 400:
                    message = f"HTTP {response.status}"
                    if isinstance(payload, dict):
                        message = payload.get("error") or payload.get("message") or message
                    logger.warning(f"{method} {path} failed with {response.status}: {message}")
                    raise APIError(message, status=response.status, path=path)

                return payload

        except asyncio.TimeoutError as e:
            logger.error(f"{method} {path} timed out after {self.timeout}s")
            raise APIConnectionError(f"Request to {path} timed out", original_error=e)
        except aiohttp.ClientError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise APIConnectionError(f"Could not reach {url}: {e}", original_error=e)

    def _validate(self, model, payload: Any, path: str):
        try:
            return model.model_validate(unwrap_envelope(payload))
        except PydanticValidationError as e:
            logger.error(f"Malformed response from {path}: {e}")
            raise APIError(f"Malformed response from {path}", path=path)

    # ------------------------------------------------------------------
    # Chat progress
    # ------------------------------------------------------------------

    async def get_chat_progress(self, event_id: int) -> ChatProgressResponse:
        path = f"/client/events/{event_id}/chat-progress"
        payload = await self._request("GET", path)
        return self._validate(ChatProgressResponse, payload, path)

    async def submit_chat_answer(self, event_id: int, step: int, answer: str) -> AnswerResponse:
        path = f"/client/events/{event_id}/chat-progress"
        payload = await self._request("POST", path, json={"step": step, "answer": answer})
        return self._validate(AnswerResponse, payload, path)

    async def fill_forms_from_chat(self, event_id: int) -> Dict[str, Any]:
        payload = await self._request(
            "POST", f"/client/events/{event_id}/chat-progress/fill-forms"
        )
        return payload if isinstance(payload, dict) else {"data": payload}

    # ------------------------------------------------------------------
    # Document and notes parsing
    # ------------------------------------------------------------------

    def _extracted_from(self, candidate: Any, source: str) -> ExtractedData:
        if not isinstance(candidate, dict):
            raise ParseError("Parser returned no extracted data", source=source)
        if "extracted_fields" not in candidate and "extractedFields" not in candidate:
            raise ParseError("Parser returned no extracted fields", source=source)
        try:
            return ExtractedData.model_validate(candidate)
        except PydanticValidationError as e:
            raise ParseError(f"Malformed extracted data: {e}", source=source)

    async def upload_document(
        self,
        event_id: int,
        content: bytes,
        filename: str,
        document_type: str = "pdf",
    ) -> ExtractedData:
        """Upload a document and return the parser's extraction."""
        if document_type not in DOCUMENT_TYPES:
            raise ValidationError(
                f"Unsupported document type: {document_type}", field="document_type"
            )

        form = aiohttp.FormData()
        form.add_field("event_id", str(event_id))
        form.add_field("document", content, filename=filename)
        form.add_field("document_type", document_type)

        payload = await self._request(
            "POST", f"{self._event_prefix(event_id)}/documents/upload", data=form
        )
        body = unwrap_envelope(payload)
        parsed = body.get("parsed_data") if isinstance(body, dict) else None
        return self._extracted_from(parsed, source=filename)

    async def parse_notes(self, event_id: int, notes: str) -> ExtractedData:
        """Send free-text notes to the parser."""
        payload = await self._request(
            "POST",
            f"{self._event_prefix(event_id)}/documents/parse-notes",
            json={"event_id": event_id, "notes": notes},
        )
        return self._extracted_from(unwrap_envelope(payload), source="notes")

    # ------------------------------------------------------------------
    # Domain forms
    # ------------------------------------------------------------------

    async def get_planning(self, event_id: int) -> PlanningResponse:
        path = f"{self._event_prefix(event_id)}/planning"
        payload = await self._request("GET", path)
        return self._validate(PlanningResponse, payload, path)

    async def save_planning(
        self, event_id: int, planning: PlanningFormData, notes: str = ""
    ) -> Any:
        return await self._request(
            self._save_method,
            f"{self._event_prefix(event_id)}/planning",
            json={"planning_data": planning.to_wire(), "notes": notes},
        )

    async def get_music_ideas(self, event_id: int) -> MusicIdeasResponse:
        path = f"{self._event_prefix(event_id)}/music-ideas"
        payload = await self._request("GET", path)
        return self._validate(MusicIdeasResponse, payload, path)

    async def save_music_ideas(
        self, event_id: int, music: MusicIdeasFormData, notes: str = ""
    ) -> Any:
        return await self._request(
            self._save_method,
            f"{self._event_prefix(event_id)}/music-ideas",
            json={"music_ideas": music.model_dump(), "notes": notes},
        )

    async def get_timeline(self, event_id: int) -> TimelineResponse:
        path = f"{self._event_prefix(event_id)}/timeline"
        payload = await self._request("GET", path)
        return self._validate(TimelineResponse, payload, path)

    async def save_timeline(
        self, event_id: int, timeline: TimelineFormData, notes: str = ""
    ) -> Any:
        body = timeline.model_dump()
        body["notes"] = notes
        return await self._request(
            self._save_method,
            f"{self._event_prefix(event_id)}/timeline",
            json=body,
        )
