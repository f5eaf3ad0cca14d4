"""
Database Module - SQLite persistence for the reference backend

Tables:
- events: event metadata and the DJ's calendar link
- event_chat_progress: one chat progress record per (event, user)
- event_forms: planning / music / timeline form JSON per event
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from .logging_config import get_logger

logger = get_logger(__name__)


class Database:
    """SQLite database manager for DJ Planner events."""

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    @contextmanager
    def get_connection(self):
        """
        Context manager for database connections.

        Commits on success, rolls back on error, always closes.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            raise e
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create all tables if they do not exist yet."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    dj_calendar_link TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Answers and messages are JSON; records are never deleted
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS event_chat_progress (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    current_step INTEGER NOT NULL DEFAULT 1,
                    answers TEXT NOT NULL DEFAULT '{}',
                    chat_messages TEXT NOT NULL DEFAULT '[]',
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(event_id, user_id),
                    FOREIGN KEY (event_id) REFERENCES events(id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS event_forms (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id INTEGER NOT NULL,
                    domain TEXT NOT NULL,  -- planning, music, timeline
                    data TEXT NOT NULL,
                    notes TEXT DEFAULT '',
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(event_id, domain),
                    FOREIGN KEY (event_id) REFERENCES events(id)
                )
            """)

        logger.debug(f"Schema ready at {self.db_path}")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def create_event(self, name: str, dj_calendar_link: Optional[str] = None) -> int:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO events (name, dj_calendar_link) VALUES (?, ?)",
                (name, dj_calendar_link)
            )
            return cursor.lastrowid

    def get_event(self, event_id: int) -> Optional[dict]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM events WHERE id = ?", (event_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def list_events(self) -> List[dict]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM events ORDER BY id")
            return [dict(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Chat progress
    # ------------------------------------------------------------------

    @staticmethod
    def _progress_from_row(row: sqlite3.Row) -> dict:
        progress = dict(row)
        for field, default in (("answers", {}), ("chat_messages", [])):
            try:
                progress[field] = json.loads(progress[field]) if progress[field] else default
            except json.JSONDecodeError:
                logger.warning(f"Corrupt {field} JSON in chat progress {progress['id']}")
                progress[field] = default
        progress["is_completed"] = bool(progress["is_completed"])
        return progress

    def get_chat_progress(self, event_id: int, user_id: int) -> Optional[dict]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM event_chat_progress WHERE event_id = ? AND user_id = ?",
                (event_id, user_id)
            )
            row = cursor.fetchone()
            return self._progress_from_row(row) if row else None

    def create_chat_progress(self, event_id: int, user_id: int) -> dict:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO event_chat_progress (event_id, user_id) VALUES (?, ?)",
                (event_id, user_id)
            )
        return self.get_chat_progress(event_id, user_id)

    def update_chat_progress(
        self,
        progress_id: int,
        current_step: int,
        answers: Dict[str, Any],
        chat_messages: List[dict],
        is_completed: bool
    ) -> None:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE event_chat_progress
                SET current_step = ?, answers = ?, chat_messages = ?,
                    is_completed = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            """, (
                current_step,
                json.dumps(answers),
                json.dumps(chat_messages),
                int(is_completed),
                progress_id,
            ))

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def get_form(self, event_id: int, domain: str) -> Optional[dict]:
        """Stored form as {"data": ..., "notes": ...}, or None."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data, notes FROM event_forms WHERE event_id = ? AND domain = ?",
                (event_id, domain)
            )
            row = cursor.fetchone()
            if not row:
                return None
            try:
                data = json.loads(row["data"])
            except json.JSONDecodeError:
                logger.warning(f"Corrupt {domain} form JSON for event {event_id}")
                data = {}
            return {"data": data, "notes": row["notes"] or ""}

    def upsert_form(self, event_id: int, domain: str, data: dict, notes: str = "") -> None:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO event_forms (event_id, domain, data, notes)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(event_id, domain) DO UPDATE SET
                    data = excluded.data,
                    notes = excluded.notes,
                    updated_at = CURRENT_TIMESTAMP
            """, (event_id, domain, json.dumps(data), notes or ""))
