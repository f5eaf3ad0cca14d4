"""
Document and notes ingestion.

Upload or paste -> remote AI parse -> form filler -> one save per domain.
The three domains run concurrently and independently: a failed save in one
never stops the other two, and nothing is rolled back.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from .callbacks import invoke_callback
from .config import config
from .exceptions import PlannerError, SaveError
from .form_filler import fill_music_ideas_form, fill_planning_form, fill_timeline_form
from .form_store import Domain, FormStore
from .logging_config import get_logger
from .models import ExtractedData

logger = get_logger(__name__)

FORM_FILLERS = {
    Domain.PLANNING: fill_planning_form,
    Domain.MUSIC: fill_music_ideas_form,
    Domain.TIMELINE: fill_timeline_form,
}


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    ERROR = "error"


class SaveStatusTracker:
    """
    Session-wide save indicator.

    Success resets to idle after 3 seconds, errors after 5. Must be driven
    from inside a running event loop.
    """

    def __init__(
        self,
        success_reset: float = config.SUCCESS_STATUS_RESET,
        error_reset: float = config.ERROR_STATUS_RESET,
        on_change: Optional[Callable[[SaveStatus], Any]] = None,
    ):
        self.success_reset = success_reset
        self.error_reset = error_reset
        self.on_change = on_change
        self.status = SaveStatus.IDLE
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    def _set(self, status: SaveStatus) -> None:
        self.status = status
        if self.on_change is not None:
            self.on_change(status)

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _schedule_reset(self, delay: float) -> None:
        self._cancel_reset()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(delay, self._reset)

    def _reset(self) -> None:
        self._reset_handle = None
        self._set(SaveStatus.IDLE)

    def saving(self) -> None:
        self._cancel_reset()
        self._set(SaveStatus.SAVING)

    def succeeded(self) -> None:
        self._set(SaveStatus.SUCCESS)
        self._schedule_reset(self.success_reset)

    def failed(self) -> None:
        self._set(SaveStatus.ERROR)
        self._schedule_reset(self.error_reset)


class AIOverrides:
    """Freshly mapped forms the editors show until the next refetch lands."""

    def __init__(self):
        self._forms: Dict[Domain, BaseModel] = {}

    def set(self, domain: Domain, form: BaseModel) -> None:
        self._forms[domain] = form

    def get(self, domain: Domain) -> Optional[BaseModel]:
        return self._forms.get(domain)

    def clear(self, domain: Optional[Domain] = None) -> None:
        if domain is None:
            self._forms.clear()
        else:
            self._forms.pop(domain, None)

    def __contains__(self, domain: Domain) -> bool:
        return domain in self._forms


@dataclass
class IngestionResult:
    """Outcome of one ingestion run."""
    extracted: Optional[ExtractedData] = None
    saved: List[Domain] = field(default_factory=list)
    failed: Dict[Domain, str] = field(default_factory=dict)
    parse_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.parse_error is None and not self.failed


class IngestionOrchestrator:
    """Applies one parse result across the planning, music and timeline forms."""

    def __init__(
        self,
        api,
        event_id: int,
        store: Optional[FormStore] = None,
        is_chat_completed: Optional[Callable[[], bool]] = None,
        on_completed: Optional[Callable[[], Any]] = None,
        on_notify: Optional[Callable[[str, str], Any]] = None,
        status: Optional[SaveStatusTracker] = None,
    ):
        self.api = api
        self.event_id = event_id
        self.store = store or FormStore(api, event_id)
        self.is_chat_completed = is_chat_completed
        self.on_completed = on_completed
        self.on_notify = on_notify
        self.status = status or SaveStatusTracker()
        self.overrides = AIOverrides()

    async def _notify(self, level: str, message: str) -> None:
        await invoke_callback(self.on_notify, level, message)

    async def _parse_failed(self, error: PlannerError, source: str) -> IngestionResult:
        logger.error(f"Parsing {source} for event {self.event_id} failed: {error.message}")
        await self._notify("error", f"Failed to process {source}: {error.message}")
        return IngestionResult(parse_error=error.message)

    async def ingest_document(
        self, content: bytes, filename: str, document_type: str = "pdf"
    ) -> IngestionResult:
        """Upload a document. Documents replace existing songs and timeline rows."""
        logger.info(f"Uploading {filename} ({document_type}) for event {self.event_id}")
        try:
            extracted = await self.api.upload_document(
                self.event_id, content, filename, document_type
            )
        except PlannerError as e:
            return await self._parse_failed(e, "document")
        return await self.apply_extracted(extracted, append_mode=False)

    async def ingest_notes(self, notes: str) -> IngestionResult:
        """Parse pasted notes. Notes add to existing songs and timeline rows."""
        if not notes or not notes.strip():
            await self._notify("warning", "Please enter some notes to process.")
            return IngestionResult(parse_error="No notes provided")

        logger.info(f"Parsing {len(notes)} characters of notes for event {self.event_id}")
        try:
            extracted = await self.api.parse_notes(self.event_id, notes)
        except PlannerError as e:
            return await self._parse_failed(e, "notes")
        return await self.apply_extracted(extracted, append_mode=True)

    async def _fill_domain(
        self, domain: Domain, extracted: ExtractedData, append_mode: bool
    ) -> BaseModel:
        current = await self.store.fetch(domain)
        filled = FORM_FILLERS[domain](current, extracted, append_mode)
        try:
            await self.store.save(domain, filled)
        except PlannerError as e:
            raise SaveError(f"Failed to save {domain.value}: {e.message}", domain=domain.value)
        self.overrides.set(domain, filled)
        return filled

    async def apply_extracted(
        self, extracted: ExtractedData, append_mode: bool = False
    ) -> IngestionResult:
        """Fill and save all three domains concurrently, isolating failures."""
        self.status.saving()

        domains = list(Domain)
        results = await asyncio.gather(
            *[self._fill_domain(domain, extracted, append_mode) for domain in domains],
            return_exceptions=True
        )

        result = IngestionResult(extracted=extracted)
        for domain, outcome in zip(domains, results):
            if isinstance(outcome, BaseException):
                message = getattr(outcome, "message", None) or str(outcome)
                logger.error(f"Error saving {domain.value} for event {self.event_id}: {message}")
                result.failed[domain] = message
            else:
                result.saved.append(domain)

        if result.failed:
            self.status.failed()
        else:
            self.status.succeeded()

        if self.is_chat_completed is not None and self.is_chat_completed():
            await invoke_callback(self.on_completed)
            self.store.invalidate_all()

        if result.saved:
            saved = ", ".join(d.value for d in result.saved)
            logger.info(f"Event {self.event_id}: saved {saved}")
        if result.failed:
            failed = ", ".join(d.value for d in result.failed)
            await self._notify("error", f"Some forms could not be saved: {failed}")
        else:
            await self._notify("success", "Forms filled from the extracted information.")

        return result
