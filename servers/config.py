"""
Server configuration for the DJ Planner backend.

Re-exports the main djplanner.config for server use.
"""

from djplanner.config import config, PlannerConfig

__all__ = ['config', 'PlannerConfig']
