"""
Onboarding chat: the short scripted flow shown before an event has chat
progress on the server.

    initial -> planner-question -> timeline-upload | planning-form

Fresh bot messages are preceded by a typing pause.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional

from ..callbacks import invoke_callback
from ..config import config
from ..logging_config import get_logger
from ..models import ChatMessage
from .messages import append_message, make_message

logger = get_logger(__name__)

GREETING = "Hi, we are so glad you booked us for your wedding! Ready to start planning?"
PLANNER_QUESTION = "Great, let's do it! Have you hired a professional wedding planner to work with you?"
TIMELINE_UPLOAD_PROMPT = "Smart move. Have they given you a timeline yet? If so, upload it here"
PLANNING_FORM_PROMPT = (
    "No worries! We'll help guide you through the planning process. "
    "Let's start with some questions to understand your vision."
)
DOCUMENT_PROCESSED = (
    "Great! I've processed your timeline document and filled in the forms with the "
    "extracted information. You can now review and edit the planning details."
)


class OnboardingStage(Enum):
    INITIAL = "initial"
    PLANNER_QUESTION = "planner-question"
    TIMELINE_UPLOAD = "timeline-upload"
    PLANNING_FORM = "planning-form"
    REVIEW = "review"


class OnboardingFlow:
    """Scripted onboarding conversation."""

    def __init__(
        self,
        typing_delay: float = config.TYPING_DELAY,
        on_upload_requested: Optional[Callable[[], Any]] = None,
        on_start_questions: Optional[Callable[[], Any]] = None,
        on_review_forms: Optional[Callable[[], Any]] = None,
    ):
        self.typing_delay = typing_delay
        self.on_upload_requested = on_upload_requested
        self.on_start_questions = on_start_questions
        self.on_review_forms = on_review_forms
        self.stage = OnboardingStage.INITIAL
        self.messages: List[ChatMessage] = []
        self.is_typing = False

    async def _bot_says(self, text: str, options: List[str]) -> None:
        self.is_typing = True
        try:
            await asyncio.sleep(self.typing_delay)
        finally:
            self.is_typing = False
        self.messages = append_message(self.messages, make_message(text, True, options))

    def _user_says(self, text: str) -> None:
        self.messages = append_message(self.messages, make_message(text, False))

    async def start(self) -> None:
        if self.messages:
            return
        await self._bot_says(GREETING, ["YES"])

    async def select_option(self, option: str) -> bool:
        """
        Advance the flow for a clicked option.

        Returns:
            False if the option means nothing at the current stage
        """
        stage = self.stage

        if stage is OnboardingStage.INITIAL and option == "YES":
            self._user_says(option)
            self.stage = OnboardingStage.PLANNER_QUESTION
            await self._bot_says(PLANNER_QUESTION, ["YES", "NO"])
        elif stage is OnboardingStage.PLANNER_QUESTION and option == "YES":
            self._user_says(option)
            self.stage = OnboardingStage.TIMELINE_UPLOAD
            await self._bot_says(TIMELINE_UPLOAD_PROMPT, ["Upload Timeline"])
        elif stage is OnboardingStage.PLANNER_QUESTION and option == "NO":
            self._user_says(option)
            self.stage = OnboardingStage.PLANNING_FORM
            await self._bot_says(PLANNING_FORM_PROMPT, ["Start Questions"])
        elif stage is OnboardingStage.TIMELINE_UPLOAD and option == "Upload Timeline":
            await invoke_callback(self.on_upload_requested)
        elif stage is OnboardingStage.PLANNING_FORM and option == "Start Questions":
            await invoke_callback(self.on_start_questions)
        elif stage is OnboardingStage.REVIEW and option == "Review Forms":
            await invoke_callback(self.on_review_forms)
        else:
            logger.debug(f"Option {option!r} ignored at stage {stage.value}")
            return False
        return True

    async def document_processed(self) -> None:
        """Report a processed timeline document and offer the review."""
        self.stage = OnboardingStage.REVIEW
        await self._bot_says(DOCUMENT_PROCESSED, ["Review Forms"])
