"""
Explicit chat state and the pure transitions applied to it.

The server owns progress. The client holds a ChatState snapshot and every
transition returns a new snapshot, so the flow can be tested without a UI.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..exceptions import ChatBusyError
from ..models import AnswerResponse, ChatMessage, ChatProgressResponse, StepData
from .messages import append_message, make_message, render_message, replay_history


@dataclass(frozen=True)
class ChatState:
    """Client-side snapshot of one event's chat."""
    event_id: int
    current_step: int = 1
    current_step_data: Optional[StepData] = None
    messages: List[ChatMessage] = field(default_factory=list)
    is_completed: bool = False
    is_submitting: bool = False
    calendar_link: Optional[str] = None
    pending_message_id: Optional[str] = None


def load_progress(state: ChatState, response: ChatProgressResponse) -> ChatState:
    """Rebuild state from a fetched ChatProgress record."""
    progress = response.chat_progress
    return replace(
        state,
        current_step=progress.current_step,
        current_step_data=response.current_step_data,
        messages=replay_history(progress.chat_messages, response.dj_calendar_link),
        is_completed=state.is_completed or response.is_completed or progress.is_completed,
        is_submitting=False,
        calendar_link=response.dj_calendar_link,
        pending_message_id=None,
    )


def begin_submission(state: ChatState, answer: str) -> Tuple[ChatState, ChatMessage]:
    """
    Optimistically show the user's answer and mark a submission in flight.

    Raises:
        ChatBusyError: another answer is still being submitted
    """
    if state.is_submitting:
        raise ChatBusyError(state.current_step)

    optimistic = make_message(answer, is_bot=False)
    messages = append_message(state.messages, optimistic)
    appended = len(messages) > len(state.messages)

    new_state = replace(
        state,
        messages=messages,
        is_submitting=True,
        pending_message_id=optimistic.id if appended else None,
    )
    return new_state, optimistic


def _ends_with_question(messages: List[ChatMessage], question: str) -> bool:
    if not messages:
        return False
    last = messages[-1]
    return last.is_bot and last.text.startswith(question)


def apply_answer_response(state: ChatState, response: AnswerResponse) -> ChatState:
    """
    Reconcile the optimistic state with the server's answer response.

    The server's history replaces the local one, which drops the optimistic
    entry. If the server sent no history the local list is kept. The next
    question is appended when the history does not already end with it.
    """
    progress = response.chat_progress
    is_completed = state.is_completed or response.is_completed or progress.is_completed

    if progress.chat_messages:
        messages = replay_history(progress.chat_messages, state.calendar_link)
    else:
        messages = list(state.messages)

    next_step = response.next_step_data
    if not is_completed and next_step and not _ends_with_question(messages, next_step.question):
        bot_message = make_message(next_step.question, is_bot=True, options=next_step.options)
        messages = append_message(messages, render_message(bot_message, state.calendar_link))

    return replace(
        state,
        current_step=progress.current_step,
        current_step_data=next_step,
        messages=messages,
        is_completed=is_completed,
        is_submitting=False,
        pending_message_id=None,
    )


def fail_submission(state: ChatState) -> ChatState:
    """Drop the optimistic answer so the user can retry from the last good state."""
    messages = state.messages
    if state.pending_message_id:
        messages = [m for m in messages if m.id != state.pending_message_id]
    return replace(state, messages=messages, is_submitting=False, pending_message_id=None)
