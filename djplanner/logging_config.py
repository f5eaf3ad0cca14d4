"""
Centralized Logging Configuration for DJ Planner

Provides structured logging with rotation, levels, and consistent formatting.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


class PlannerLogger:
    """Centralized logger for DJ Planner components."""

    _loggers = {}

    @classmethod
    def get_logger(cls, name: str, log_dir: Optional[Path] = None) -> logging.Logger:
        """
        Get or create a logger with consistent configuration.

        Args:
            name: Logger name (usually __name__ of the module)
            log_dir: Optional directory for log files (defaults to config.log_dir)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        logger = logging.getLogger(name)

        # Only configure if not already configured
        if not logger.handlers:
            logger.setLevel(logging.DEBUG)

            # Console handler - INFO and above
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            logger.addHandler(console_handler)

            from .config import config

            # File handler with rotation - DEBUG and above
            if config.file_logging:
                if log_dir is None:
                    log_dir = config.log_dir

                log_dir.mkdir(parents=True, exist_ok=True)

                log_file = log_dir / f"{name.replace('.', '_')}.log"
                file_handler = RotatingFileHandler(
                    log_file,
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5
                )
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S'
                )
                file_handler.setFormatter(file_formatter)
                logger.addHandler(file_handler)

            # Prevent propagation to root logger
            logger.propagate = False

        cls._loggers[name] = logger
        return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Example:
        from djplanner.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Started processing")
    """
    return PlannerLogger.get_logger(name)


def set_debug_mode(enable: bool = True) -> None:
    """Enable or disable debug output on the console for all loggers."""
    level = logging.DEBUG if enable else logging.INFO
    for logger in PlannerLogger._loggers.values():
        for handler in logger.handlers:
            # RotatingFileHandler is a StreamHandler too; leave files at DEBUG
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, RotatingFileHandler):
                handler.setLevel(level)
