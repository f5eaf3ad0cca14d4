"""
Chat message helpers: ids, de-duplication, history replay and the
calendar link shown with the closing message.

Everything here works on plain lists of ChatMessage and returns new
lists; nothing holds a lock.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..config import config
from ..models import ChatMessage

COMPLETION_PHRASE = (
    "This was fun! I think we have all of the info we need. "
    "Let's do one final planning call 1-2 weeks before the wedding. Grab a time here"
)

CALENDAR_LINK_TEMPLATE = (
    ': <a href="{url}" target="_blank" rel="noopener noreferrer" '
    'class="calendar-link">Schedule your final planning call</a>'
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_message_id() -> str:
    """Opaque id: millisecond clock plus random hex."""
    return f"{int(time.time() * 1000):x}-{uuid.uuid4().hex[:12]}"


def make_message(
    text: str,
    is_bot: bool,
    options: Optional[List[str]] = None,
    timestamp: Optional[datetime] = None,
) -> ChatMessage:
    return ChatMessage(
        id=generate_message_id(),
        text=text,
        is_bot=is_bot,
        options=list(options) if options else None,
        timestamp=timestamp or utc_now(),
    )


def _as_utc(moment: datetime) -> datetime:
    # Persisted timestamps may come back naive
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_duplicate_message(
    candidate: ChatMessage,
    history: Iterable[ChatMessage],
    window_ms: int = config.DUPLICATE_WINDOW_MS,
) -> bool:
    """True if history already holds the same (is_bot, text) within window_ms of candidate."""
    candidate_time = _as_utc(candidate.timestamp)
    for existing in history:
        if existing.is_bot != candidate.is_bot or existing.text != candidate.text:
            continue
        delta = abs((_as_utc(existing.timestamp) - candidate_time).total_seconds()) * 1000
        if delta < window_ms:
            return True
    return False


def append_message(history: List[ChatMessage], message: ChatMessage) -> List[ChatMessage]:
    """Return history with message appended, unless it is a duplicate."""
    if is_duplicate_message(message, history):
        return list(history)
    return list(history) + [message]


def dedupe_history(messages: Iterable[ChatMessage]) -> List[ChatMessage]:
    """Drop repeated (id, text) pairs, keeping first occurrences in order."""
    seen = set()
    result = []
    for message in messages:
        key = (message.id, message.text)
        if key in seen:
            continue
        seen.add(key)
        result.append(message)
    return result


def augment_bot_text(text: str, calendar_link: Optional[str]) -> str:
    """
    Attach the calendar link to the closing message.

    Only text that is exactly the completion phrase is augmented, so text
    that already carries the link is returned unchanged.
    """
    if not calendar_link or text.strip() != COMPLETION_PHRASE:
        return text
    return text.rstrip() + CALENDAR_LINK_TEMPLATE.format(url=calendar_link)


def render_message(message: ChatMessage, calendar_link: Optional[str]) -> ChatMessage:
    """Display copy of a message, with the calendar link applied to bot text."""
    if not message.is_bot:
        return message
    text = augment_bot_text(message.text, calendar_link)
    if text == message.text:
        return message
    return message.model_copy(update={"text": text})


def replay_history(
    messages: Iterable[ChatMessage], calendar_link: Optional[str] = None
) -> List[ChatMessage]:
    """
    Rebuild the visible message list from persisted history.

    Idempotent: replaying the output again yields the same list.
    """
    return [render_message(message, calendar_link) for message in dedupe_history(messages)]
