"""
SnapshotStore - Persist the student snapshot in ~/.graduplanner/progress.db.

Stores one snapshot per student id as the same JSON wire format used by
share links, so a stored row can always be shared as-is.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from graduplanner.schemas import Snapshot

from .share import DecodeError, snapshot_from_json, snapshot_to_json


logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_DIR = Path.home() / ".graduplanner"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"


class SnapshotStore:
    """
    Key-value snapshot persistence in SQLite.

    Each method opens its own connection, so a store instance can be kept in
    long-lived UI session state.
    """

    def __init__(self, db_path: Optional[Path] = None, student_id: str = "default"):
        """
        Initialize snapshot store.

        Args:
            db_path: Path to progress.db (default: ~/.graduplanner/progress.db)
            student_id: Key of the snapshot row
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.student_id = student_id
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    student_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def load(self) -> Optional[Snapshot]:
        """
        Load the stored snapshot.

        Returns:
            The snapshot, or None if nothing was saved yet

        Raises:
            DecodeError: If the stored payload is corrupted
        """
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT payload FROM snapshots WHERE student_id = ?",
                (self.student_id,)
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        if not row:
            return None
        try:
            return snapshot_from_json(row["payload"])
        except DecodeError as e:
            raise DecodeError(f"Stored snapshot for '{self.student_id}' is corrupted: {e}") from e

    def save(self, snapshot: Snapshot):
        """Replace the stored snapshot."""
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO snapshots (student_id, payload, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(student_id) DO UPDATE SET
                     payload = excluded.payload,
                     updated_at = excluded.updated_at""",
                (self.student_id, snapshot_to_json(snapshot), now)
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug(f"Saved snapshot for '{self.student_id}'")

    def clear(self):
        """Remove the stored snapshot."""
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM snapshots WHERE student_id = ?",
                (self.student_id,)
            )
            conn.commit()
        finally:
            conn.close()

    def get_updated_at(self) -> Optional[datetime]:
        """When the snapshot was last saved, if ever."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT updated_at FROM snapshots WHERE student_id = ?",
                (self.student_id,)
            )
            row = cursor.fetchone()
            return datetime.fromisoformat(row["updated_at"]) if row else None
        finally:
            conn.close()
