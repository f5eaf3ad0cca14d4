"""
DJ Planner - wedding DJ planning chat, forms and document ingestion
"""

__version__ = "1.0.0"

# Export central configuration
from .config import config, PlannerConfig

# Export logging utilities
from .logging_config import get_logger, PlannerLogger

# Export exceptions
from .exceptions import (
    PlannerError,
    APIError,
    APIConnectionError,
    ParseError,
    SaveError,
    EventNotFoundError,
    ChatProgressNotFoundError,
    ChatNotCompletedError,
    ChatBusyError,
    CategoryLimitError,
    ValidationError,
    ConfigurationError,
    AIExtractionError,
    create_error_response
)

# Export the field mapper
from .form_filler import fill_planning_form, fill_music_ideas_form, fill_timeline_form

__all__ = [
    'config', 'PlannerConfig',
    'get_logger', 'PlannerLogger',
    'PlannerError', 'APIError', 'APIConnectionError', 'ParseError',
    'SaveError', 'EventNotFoundError', 'ChatProgressNotFoundError',
    'ChatNotCompletedError', 'ChatBusyError', 'CategoryLimitError',
    'ValidationError', 'ConfigurationError', 'AIExtractionError',
    'create_error_response',
    'fill_planning_form', 'fill_music_ideas_form', 'fill_timeline_form',
    '__version__'
]
