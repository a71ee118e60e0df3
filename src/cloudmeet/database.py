"""SQLite store for per-user Google refresh tokens."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    google_refresh_token TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class TokenStore:
    """Refresh tokens keyed by user id.

    The OAuth callback writes tokens with set_refresh_token; the credential
    manager only ever reads them.
    """

    def __init__(self, db_path: str | Path = "cloudmeet.db"):
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(DB_SCHEMA)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if not self._conn:
            self.connect()
        return self._conn

    def get_refresh_token(self, user_id: str) -> str | None:
        row = self.conn.execute(
            "SELECT google_refresh_token FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        if not row:
            return None
        return row["google_refresh_token"] or None

    def set_refresh_token(self, user_id: str, refresh_token: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            self.conn.execute(
                """INSERT INTO users (id, google_refresh_token, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    google_refresh_token = excluded.google_refresh_token,
                    updated_at = excluded.updated_at""",
                (user_id, refresh_token, now, now),
            )
            self.conn.commit()

    def delete_refresh_token(self, user_id: str) -> bool:
        """Disconnect a user. Returns True if a token was removed."""
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            cursor = self.conn.execute(
                """UPDATE users SET google_refresh_token = NULL, updated_at = ?
                WHERE id = ? AND google_refresh_token IS NOT NULL""",
                (now, user_id),
            )
            self.conn.commit()
            return cursor.rowcount > 0
