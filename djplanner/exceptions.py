"""
Custom Exception Types for DJ Planner

Provides specific exception classes for better error handling and debugging.
"""


class PlannerError(Exception):
    """Base exception for all DJ Planner errors."""

    def __init__(self, message: str, error_code: str = "PLANNER_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class APIError(PlannerError):
    """Raised when the planning backend answers with an error status."""

    def __init__(self, message: str, status: int = None, path: str = None):
        super().__init__(message, error_code="API_ERROR")
        self.status = status
        self.path = path


class APIConnectionError(PlannerError):
    """Raised when the planning backend cannot be reached or times out."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message, error_code="API_CONNECTION_ERROR")
        self.original_error = original_error


class ParseError(PlannerError):
    """Raised when a document or notes parse does not produce extracted data."""

    def __init__(self, message: str, source: str = None):
        super().__init__(message, error_code="PARSE_ERROR")
        self.source = source


class SaveError(PlannerError):
    """Raised when persisting one form domain fails."""

    def __init__(self, message: str, domain: str = None):
        super().__init__(message, error_code="SAVE_ERROR")
        self.domain = domain


class EventNotFoundError(PlannerError):
    """Raised when an event cannot be found."""

    def __init__(self, event_id: int):
        super().__init__(f"Event {event_id} not found", error_code="EVENT_NOT_FOUND")
        self.event_id = event_id


class ChatProgressNotFoundError(PlannerError):
    """Raised when an answer is submitted before chat progress exists."""

    def __init__(self, event_id: int):
        super().__init__(
            f"Chat progress not found for event {event_id}",
            error_code="CHAT_PROGRESS_NOT_FOUND"
        )
        self.event_id = event_id


class ChatNotCompletedError(PlannerError):
    """Raised when forms are requested from a chat that is still in progress."""

    def __init__(self, event_id: int):
        super().__init__("Chat is not completed yet", error_code="CHAT_NOT_COMPLETED")
        self.event_id = event_id


class ChatBusyError(PlannerError):
    """Raised when an answer is submitted while another submission is in flight."""

    def __init__(self, step: int = None):
        super().__init__("An answer is already being submitted", error_code="CHAT_BUSY")
        self.step = step


class CategoryLimitError(PlannerError):
    """Raised when a song would push a music category past its limit."""

    def __init__(self, category: str, limit: int):
        message = f"You can only add up to {limit} songs in the {category} category."
        super().__init__(message, error_code="CATEGORY_LIMIT")
        self.category = category
        self.limit = limit


class ValidationError(PlannerError):
    """Raised when data validation fails."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, error_code="VALIDATION_ERROR")
        self.field = field


class ConfigurationError(PlannerError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.config_key = config_key


class AIExtractionError(PlannerError):
    """Raised when AI extraction fails and no fallback applies."""

    def __init__(self, message: str, model: str = None):
        super().__init__(message, error_code="AI_EXTRACTION_ERROR")
        self.model = model


def create_error_response(error: Exception, include_traceback: bool = False) -> dict:
    """
    Create a consistent error response dict from an exception.

    Args:
        error: The exception to convert
        include_traceback: Whether to include traceback info (for debugging)

    Returns:
        Dict with error details
    """
    if isinstance(error, PlannerError):
        response = {
            "success": False,
            "error": error.message,
            "error_code": error.error_code
        }
    else:
        response = {
            "success": False,
            "error": str(error),
            "error_code": "UNKNOWN_ERROR"
        }

    if include_traceback:
        import traceback
        response["traceback"] = traceback.format_exc()

    return response
