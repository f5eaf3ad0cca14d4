"""
Database access for the services.

The database path is resolved from config on every call so the backend
follows DJPLANNER_DB_PATH changes without a restart.
"""

from pathlib import Path
from typing import Optional, Set

from djplanner.database import Database
from djplanner.exceptions import EventNotFoundError

from ..config import config

_initialized: Set[str] = set()


def get_database(db_path: Optional[Path] = None) -> Database:
    """Database for the configured path, with its schema in place."""
    db = Database(db_path or config.db_path)
    key = str(db.db_path)
    if key not in _initialized:
        db.initialize_schema()
        _initialized.add(key)
    return db


def require_event(db: Database, event_id: int) -> dict:
    event = db.get_event(event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return event
