"""
Chat progress business logic.
Walks a client through the questionnaire and turns the finished chat into
planning, music ideas and timeline forms.
"""

from typing import Any, Dict

from djplanner.chat.messages import COMPLETION_PHRASE, append_message, make_message
from djplanner.chat_workflow import (
    COMPLETION_STEP,
    get_next_step,
    get_step_data,
    is_completion_answer,
)
from djplanner.database import Database
from djplanner.exceptions import (
    ChatNotCompletedError,
    ChatProgressNotFoundError,
    PlannerError,
    ValidationError,
)
from djplanner.extraction import ChatFormExtractor
from djplanner.form_store import Domain
from djplanner.ingestion import FORM_FILLERS
from djplanner.models import AnswerResponse, ChatProgress, ChatProgressResponse

from ..logging_config import get_logger
from .form_service import FormService
from .storage import get_database, require_event

logger = get_logger(__name__)


class ChatProgressService:
    """Service for the step-by-step planning chat."""

    def __init__(self, extractor: ChatFormExtractor = None, form_service: FormService = None):
        self.extractor = extractor
        self.form_service = form_service or FormService()

    def _get_extractor(self) -> ChatFormExtractor:
        # Built per call so a newly configured OPENAI_API_KEY is picked up
        return self.extractor or ChatFormExtractor()

    @staticmethod
    def _save(db: Database, progress: ChatProgress) -> None:
        db.update_chat_progress(
            progress.id,
            progress.current_step,
            {str(step): answer for step, answer in progress.answers.items()},
            [message.model_dump(mode="json") for message in progress.chat_messages],
            progress.is_completed,
        )

    def show(self, event_id: int, user_id: int) -> Dict:
        """
        Get or create chat progress for an event.

        Seeds the first question into an empty history, and re-adds the
        closing message for a chat parked at the completion step.
        """
        db = get_database()
        event = require_event(db, event_id)

        record = db.get_chat_progress(event_id, user_id)
        if record is None:
            logger.info(f"Starting chat for event {event_id}, user {user_id}")
            record = db.create_chat_progress(event_id, user_id)
        progress = ChatProgress.model_validate(record)

        step_data = get_step_data(progress.current_step)
        changed = False

        if not progress.chat_messages and step_data:
            progress.chat_messages.append(make_message(step_data.question, True, step_data.options))
            changed = True

        if progress.current_step == COMPLETION_STEP and not progress.is_completed and step_data:
            if not any(COMPLETION_PHRASE in message.text for message in progress.chat_messages):
                progress.chat_messages.append(
                    make_message(step_data.question, True, step_data.options)
                )
                changed = True

        if changed:
            self._save(db, progress)

        return ChatProgressResponse(
            chat_progress=progress,
            current_step_data=step_data,
            is_completed=progress.is_completed,
            dj_calendar_link=event["dj_calendar_link"],
        ).model_dump(mode="json")

    async def store(self, event_id: int, user_id: int, step: int, answer: str) -> Dict:
        """Record an answer, move to the next step and ask its question."""
        db = get_database()
        event = require_event(db, event_id)

        record = db.get_chat_progress(event_id, user_id)
        if record is None:
            raise ChatProgressNotFoundError(event_id)
        progress = ChatProgress.model_validate(record)

        if progress.is_completed:
            raise ValidationError("Chat is already completed", field="step")
        if step != progress.current_step:
            raise ValidationError(
                f"Answer is for step {step} but the chat is at step {progress.current_step}",
                field="step"
            )

        progress.answers[step] = answer
        progress.chat_messages = append_message(progress.chat_messages, make_message(answer, False))

        next_step = get_next_step(step, answer)
        progress.current_step = next_step
        if is_completion_answer(step, answer):
            logger.info(f"Chat completed for event {event_id}")
            progress.is_completed = True
        if progress.is_completed:
            progress.current_step = COMPLETION_STEP

        next_step_data = None if progress.is_completed else get_step_data(next_step)
        if next_step_data:
            progress.chat_messages = append_message(
                progress.chat_messages,
                make_message(next_step_data.question, True, next_step_data.options)
            )

        self._save(db, progress)

        if progress.is_completed:
            try:
                await self._fill_forms(event_id, progress)
            except PlannerError as e:
                logger.error(f"Mapping chat answers to forms failed for event {event_id}: {e.message}")

        response = AnswerResponse(
            chat_progress=progress,
            next_step_data=next_step_data,
            is_completed=progress.is_completed,
        ).model_dump(mode="json")
        response["dj_calendar_link"] = event["dj_calendar_link"]
        return response

    async def fill_forms(self, event_id: int, user_id: int) -> Dict:
        """Re-run the answers-to-forms mapping for a completed chat."""
        db = get_database()
        require_event(db, event_id)

        record = db.get_chat_progress(event_id, user_id)
        if record is None:
            raise ChatProgressNotFoundError(event_id)
        progress = ChatProgress.model_validate(record)
        if not progress.is_completed:
            raise ChatNotCompletedError(event_id)

        data = await self._fill_forms(event_id, progress)
        return {"success": True, "message": "Forms filled from chat answers", "data": data}

    async def _fill_forms(self, event_id: int, progress: ChatProgress) -> Dict[str, Any]:
        extracted = await self._get_extractor().extract_from_chat(
            progress.chat_messages, progress.answers
        )

        filled = {}
        for domain, fill in FORM_FILLERS.items():
            current, _ = self.form_service.load_form(event_id, domain)
            filled[domain] = fill(current, extracted, False)
            self.form_service.store_form(event_id, domain, filled[domain])

        logger.info(
            f"Filled forms for event {event_id} "
            f"(confidence {extracted.confidence_score:.0f})"
        )
        return {
            "planning_data": filled[Domain.PLANNING].to_wire(),
            "music_ideas": filled[Domain.MUSIC].model_dump(),
            "timeline_data": filled[Domain.TIMELINE].model_dump(),
            "confidence_score": extracted.confidence_score,
        }
