"""
Logging configuration for the DJ Planner servers.

Re-exports the main djplanner.logging_config for server use.
"""

from djplanner.logging_config import get_logger, PlannerLogger, set_debug_mode

__all__ = ['get_logger', 'PlannerLogger', 'set_debug_mode']
