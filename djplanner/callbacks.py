"""Helpers for calling user-supplied hooks that may be plain functions or coroutines."""

import inspect
from typing import Any, Callable, Optional

from .logging_config import get_logger

logger = get_logger(__name__)


async def invoke_callback(callback: Optional[Callable[..., Any]], *args: Any) -> Any:
    """
    Call a hook and await it if needed.

    Errors raised by the hook are logged, not propagated.
    """
    if callback is None:
        return None
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        logger.error(f"Callback {getattr(callback, '__name__', callback)!r} failed: {e}")
        return None
