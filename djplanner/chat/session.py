"""
Client chat session.

Drives one event's chat against the planning backend. Progress lives on the
server: every answer is shown optimistically, sent, and then reconciled with
the server's response. Network errors are caught here and reported through
``on_notify`` so a failed call never takes the chat down.
"""

from typing import Any, Callable, Dict, Optional

from ..callbacks import invoke_callback
from ..exceptions import ChatBusyError, PlannerError
from ..logging_config import get_logger
from .state import (
    ChatState,
    apply_answer_response,
    begin_submission,
    fail_submission,
    load_progress,
)

logger = get_logger(__name__)

UPLOAD_TIMELINE = "Upload Timeline"
CALENDAR_LINK = "Calendar Link"
DONE = "Done"


class ClientChatSession:
    """Server-synchronised chat for a single event."""

    def __init__(
        self,
        api,
        event_id: int,
        on_completed: Optional[Callable[[], Any]] = None,
        on_upload_requested: Optional[Callable[[], Any]] = None,
        open_url: Optional[Callable[[str], Any]] = None,
        on_notify: Optional[Callable[[str, str], Any]] = None,
        on_messages: Optional[Callable[[ChatState], Any]] = None,
    ):
        """
        Args:
            api: PlannerAPIClient (or anything with the same chat methods)
            event_id: Event whose chat this is
            on_completed: Called once when the chat turns completed
            on_upload_requested: Called after "Upload Timeline" is submitted
            open_url: Called with the DJ calendar URL for "Calendar Link"
            on_notify: Called with (level, message) for user-visible notices
            on_messages: Called with the new state whenever messages change
        """
        self.api = api
        self.event_id = event_id
        self.on_completed = on_completed
        self.on_upload_requested = on_upload_requested
        self.open_url = open_url
        self.on_notify = on_notify
        self.on_messages = on_messages
        self._state = ChatState(event_id=event_id)

    @property
    def state(self) -> ChatState:
        return self._state

    async def _set_state(self, new_state: ChatState) -> None:
        was_completed = self._state.is_completed
        self._state = new_state
        await invoke_callback(self.on_messages, new_state)
        if new_state.is_completed and not was_completed:
            logger.info(f"Chat completed for event {self.event_id}")
            await invoke_callback(self.on_completed)

    async def _notify(self, level: str, message: str) -> None:
        await invoke_callback(self.on_notify, level, message)

    async def load(self) -> ChatState:
        """Fetch progress and rebuild the message list from persisted history."""
        try:
            response = await self.api.get_chat_progress(self.event_id)
        except PlannerError as e:
            logger.error(f"Failed to load chat for event {self.event_id}: {e.message}")
            await self._notify("error", "Failed to load chat. Please try again.")
            return self._state

        await self._set_state(load_progress(self._state, response))
        logger.info(
            f"Loaded chat for event {self.event_id} at step {self._state.current_step} "
            f"({len(self._state.messages)} messages)"
        )
        return self._state

    async def submit_answer(self, answer: str) -> bool:
        """
        Submit an answer for the current step.

        Returns:
            True if the server accepted the answer
        """
        if self._state.is_completed:
            logger.info(f"Ignoring answer for completed chat on event {self.event_id}")
            return False

        step = self._state.current_step
        try:
            optimistic_state, _ = begin_submission(self._state, answer)
        except ChatBusyError:
            logger.warning(f"Answer for step {step} ignored, submission already in flight")
            return False

        await self._set_state(optimistic_state)

        try:
            response = await self.api.submit_chat_answer(self.event_id, step, answer)
        except PlannerError as e:
            logger.error(f"Failed to save answer for step {step}: {e.message}")
            await self._set_state(fail_submission(self._state))
            await self._notify("error", "Failed to save your answer. Please try again.")
            return False

        await self._set_state(apply_answer_response(self._state, response))
        logger.debug(f"Step {step} answered, now at step {self._state.current_step}")
        return True

    async def select_option(self, option: str) -> bool:
        """Handle a clicked option, intercepting the special values."""
        if option == CALENDAR_LINK:
            if not self._state.calendar_link:
                await self._notify("warning", "No calendar link is available yet.")
                return False
            await invoke_callback(self.open_url, self._state.calendar_link)
            return True

        if option == UPLOAD_TIMELINE:
            submitted = await self.submit_answer(option)
            if submitted:
                await invoke_callback(self.on_upload_requested)
            return submitted

        # "Done" goes through the normal path; the server decides completion
        return await self.submit_answer(option)

    async def fill_forms(self) -> Optional[Dict[str, Any]]:
        """Ask the server to map the completed chat into the three forms."""
        try:
            result = await self.api.fill_forms_from_chat(self.event_id)
        except PlannerError as e:
            logger.error(f"Failed to fill forms for event {self.event_id}: {e.message}")
            await self._notify("error", "Failed to fill forms from chat.")
            return None

        await self._notify("success", result.get("message", "Forms filled from chat."))
        return result
