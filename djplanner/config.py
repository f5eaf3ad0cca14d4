"""
Centralized Configuration for DJ Planner

Manages API endpoints, timeouts, storage paths and UI timing constants.
Every setting can be overridden through environment variables (or a .env file).
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", config_key=name)


class PlannerConfig:
    """Central configuration for DJ Planner clients and the reference backend."""

    # Debounced autosave: a burst of edits collapses into one save this long after the last edit
    AUTOSAVE_DELAY = 0.5

    # Simulated "bot is typing" pause for freshly produced bot messages
    TYPING_DELAY = 1.0

    # Two messages with the same (is_bot, text) inside this window are the same message
    DUPLICATE_WINDOW_MS = 1000

    # Save-status flag resets back to idle after these delays
    SUCCESS_STATUS_RESET = 3.0
    ERROR_STATUS_RESET = 5.0

    def __init__(self, root_dir: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            root_dir: Root directory of the project.
                     If None, auto-detects based on this file's location.
        """
        if root_dir is None:
            self._root_dir = Path(__file__).parent.parent.resolve()
        else:
            self._root_dir = Path(root_dir).resolve()

    @property
    def root_dir(self) -> Path:
        """Root directory of the project."""
        return self._root_dir

    @property
    def api_url(self) -> str:
        """Base URL of the planning backend."""
        return os.getenv("DJPLANNER_API_URL", "http://localhost:8000").rstrip("/")

    @property
    def api_token(self) -> Optional[str]:
        """Bearer token sent with every API request, if any."""
        return os.getenv("DJPLANNER_API_TOKEN") or None

    @property
    def request_timeout(self) -> float:
        """Coarse per-request timeout in seconds (AI parsing can take minutes)."""
        return _env_float("DJPLANNER_REQUEST_TIMEOUT", 300.0)

    @property
    def db_path(self) -> Path:
        """SQLite database used by the reference backend."""
        custom_path = os.getenv("DJPLANNER_DB_PATH")
        if custom_path:
            return Path(custom_path).resolve()
        return self._root_dir / "djplanner.db"

    @property
    def log_dir(self) -> Path:
        """Directory for rotating log files."""
        custom_path = os.getenv("DJPLANNER_LOG_DIR")
        if custom_path:
            return Path(custom_path).resolve()
        return self._root_dir / "logs"

    @property
    def file_logging(self) -> bool:
        """Whether loggers also write to rotating files."""
        return os.getenv("DJPLANNER_FILE_LOGGING", "1").lower() not in ("0", "false", "no", "off")

    @property
    def openai_api_key(self) -> Optional[str]:
        """OpenAI key for AI extraction; None disables AI and enables fallbacks."""
        return os.getenv("OPENAI_API_KEY") or None

    @property
    def openai_model(self) -> str:
        """Model used for chat and notes extraction."""
        return os.getenv("DJPLANNER_OPENAI_MODEL", "gpt-4.1-mini")

    def __repr__(self) -> str:
        return (
            f"PlannerConfig(\n"
            f"  api_url={self.api_url},\n"
            f"  request_timeout={self.request_timeout},\n"
            f"  db_path={self.db_path},\n"
            f"  log_dir={self.log_dir}\n"
            f")"
        )


# Global config instance
# Import this in other modules: from djplanner.config import config
config = PlannerConfig()
