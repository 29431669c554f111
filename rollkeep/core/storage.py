"""
SQLite persistence for character records and the event audit log.

Record writes that must not lose concurrent updates (resource spends) go
through compare_and_swap(), which only lands when the stored version still
matches the version the caller read.
"""

import json
import logging
import sqlite3
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import Character, Event, now

logger = logging.getLogger(__name__)

CHARACTER_COLUMNS = "id, name, data, version, created_at, modified_at"

SCHEMA = """
CREATE TABLE IF NOT EXISTS characters (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    data TEXT NOT NULL,
    version INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    modified_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS event_types (
    type TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    module TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS events (
    event_id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    event_type TEXT NOT NULL,
    character_id TEXT,
    actor_id TEXT,
    data TEXT NOT NULL,
    FOREIGN KEY (event_type) REFERENCES event_types(type)
);

CREATE INDEX IF NOT EXISTS idx_events_character ON events(character_id);
CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type);
"""


class RecordStorage:
    """
    Manages the SQLite database holding character records and events.

    One connection is shared by every caller; access is serialized with a
    lock so the same storage can back a threaded web server.

    Attributes:
        db_path: Path to SQLite database file
        conn: Database connection (None until initialize() is called)
    """

    def __init__(self, db_path: str):
        """``db_path`` may be ':memory:' for a throwaway database."""
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Open the connection and create tables if they don't exist."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        with self._lock:
            self.conn.executescript(SCHEMA)
            self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None

    # ========== Event types ==========

    def register_event_type(self, type_name: str, description: str,
                            module: str) -> None:
        """Add or refresh an event type; events of unknown types are refused."""
        with self._lock:
            self.conn.execute("""
                INSERT OR REPLACE INTO event_types
                (type, description, module, created_at)
                VALUES (?, ?, ?, ?)
            """, (type_name, description, module, now().isoformat()))
            self.conn.commit()

    def get_event_types(self) -> List[Dict[str, Any]]:
        with self._lock:
            cursor = self.conn.execute(
                "SELECT type, description, module FROM event_types ORDER BY type"
            )
            return [dict(row) for row in cursor.fetchall()]

    # ========== Characters ==========

    def save_character(self, character: Character) -> bool:
        """
        Insert a new character or overwrite an existing one unconditionally.

        Only creation uses this; updates to an existing record go through
        compare_and_swap().

        Returns:
            False if SQLite refused the write
        """
        row = (
            character.id,
            character.name,
            json.dumps(character.data),
            character.version,
            character.created_at.isoformat(),
            character.modified_at.isoformat()
        )
        try:
            with self._lock:
                self.conn.execute(
                    f"INSERT OR REPLACE INTO characters ({CHARACTER_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?)", row
                )
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Could not save character {character.id}: {e}")
            return False
        return True

    def get_character(self, character_id: str) -> Optional[Character]:
        found = self._select_characters("WHERE id = ?", (character_id,))
        return found[0] if found else None

    def list_characters(self) -> List[Character]:
        """Every character, ordered by name."""
        return self._select_characters("ORDER BY name")

    def compare_and_swap(self, character_id: str, expected_version: int,
                         data: Dict[str, Any]) -> bool:
        """
        Replace a character's data only if its version is unchanged.

        On success the stored version becomes ``expected_version + 1``.
        False means the character is missing or another writer got there
        first; the caller re-reads and decides whether to retry.
        """
        with self._lock:
            cursor = self.conn.execute("""
                UPDATE characters
                SET data = ?, version = version + 1, modified_at = ?
                WHERE id = ? AND version = ?
            """, (json.dumps(data), now().isoformat(), character_id, expected_version))
            self.conn.commit()
            return cursor.rowcount == 1

    def _select_characters(self, clause: str, params: tuple = ()) -> List[Character]:
        with self._lock:
            rows = self.conn.execute(
                f"SELECT {CHARACTER_COLUMNS} FROM characters {clause}", params
            ).fetchall()
        return [
            Character(
                id=row['id'],
                name=row['name'],
                data=json.loads(row['data']),
                version=row['version'],
                created_at=parse_timestamp(row['created_at']),
                modified_at=parse_timestamp(row['modified_at'])
            )
            for row in rows
        ]

    # ========== Event log ==========

    def log_event(self, event: Event) -> None:
        """
        Append an event to the audit log.

        Raises:
            sqlite3.IntegrityError: If the event type is not registered
        """
        with self._lock:
            self.conn.execute("""
                INSERT INTO events
                (event_id, timestamp, event_type, character_id, actor_id, data)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                event.event_id,
                event.timestamp.isoformat(),
                event.event_type,
                event.character_id,
                event.actor_id,
                json.dumps(event.data)
            ))
            self.conn.commit()

    def get_events(self, character_id: Optional[str] = None,
                   event_type: Optional[str] = None,
                   limit: int = 100) -> List[Event]:
        """Up to ``limit`` events, newest first, optionally filtered."""
        filters = [("character_id = ?", character_id), ("event_type = ?", event_type)]
        active = [(sql, value) for sql, value in filters if value]

        query = "SELECT event_id, timestamp, event_type, character_id, actor_id, data FROM events"
        if active:
            query += " WHERE " + " AND ".join(sql for sql, _ in active)
        # Events logged in the same instant keep insertion order
        query += " ORDER BY timestamp DESC, rowid DESC LIMIT ?"
        params = [value for _, value in active] + [limit]

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()

        return [
            Event(
                event_id=row['event_id'],
                timestamp=parse_timestamp(row['timestamp']),
                event_type=row['event_type'],
                character_id=row['character_id'],
                actor_id=row['actor_id'],
                data=json.loads(row['data'])
            )
            for row in rows
        ]


def parse_timestamp(value: Any) -> datetime:
    """ISO-8601 text from the database (a trailing 'Z' is accepted)."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace('Z', '+00:00'))
