"""
Error responses shared by the routers.
"""

from fastapi.responses import JSONResponse

from djplanner.exceptions import (
    AIExtractionError,
    ChatNotCompletedError,
    ChatProgressNotFoundError,
    EventNotFoundError,
    ParseError,
    PlannerError,
    ValidationError,
    create_error_response
)

from ..logging_config import get_logger

logger = get_logger(__name__)

_STATUS_CODES = (
    (EventNotFoundError, 404),
    (ChatProgressNotFoundError, 404),
    (ChatNotCompletedError, 400),
    (ValidationError, 400),
    (ParseError, 422),
    (AIExtractionError, 502),
)


def status_for(error: Exception) -> int:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


def error_response(error: Exception) -> JSONResponse:
    """JSON error body with the status code that matches the error."""
    status = status_for(error)
    if isinstance(error, PlannerError):
        logger.warning(f"{error.error_code}: {error.message}")
    else:
        logger.error(f"Unexpected error: {error}", exc_info=True)
    return JSONResponse(status_code=status, content=create_error_response(error))
