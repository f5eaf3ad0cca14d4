"""Client chat: message handling, state transitions, and the chat sessions."""

from .messages import (
    COMPLETION_PHRASE,
    append_message,
    augment_bot_text,
    dedupe_history,
    is_duplicate_message,
    make_message,
    replay_history,
)
from .onboarding import OnboardingFlow, OnboardingStage
from .session import ClientChatSession
from .state import ChatState

__all__ = [
    'COMPLETION_PHRASE', 'append_message', 'augment_bot_text', 'dedupe_history',
    'is_duplicate_message', 'make_message', 'replay_history',
    'OnboardingFlow', 'OnboardingStage', 'ClientChatSession', 'ChatState',
]
