"""Server-side session records with a sliding expiry window.

The client cookie only carries the opaque session id; the row in the
``sessions`` table decides whether the session is still valid.
"""

import secrets
import sqlite3
import time
from pathlib import Path
from typing import Dict, Optional

from config import DEFAULT_SESSION_LIFETIME


class SessionStore:
    def __init__(self, db_path: Path, lifetime: int = DEFAULT_SESSION_LIFETIME, clock=time.time) -> None:
        self.db_path = Path(db_path)
        self.lifetime = lifetime
        self.clock = clock

    def get_db_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        conn = self.get_db_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL,
                    username TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def create(self, user_id: int, username: str) -> str:
        session_id = secrets.token_urlsafe(32)
        conn = self.get_db_connection()
        try:
            conn.execute(
                """
                INSERT INTO sessions (session_id, user_id, username, expires_at)
                VALUES (?, ?, ?, ?)
                """,
                (session_id, user_id, username, self.clock() + self.lifetime),
            )
            conn.commit()
        finally:
            conn.close()
        return session_id

    def get(self, session_id: str, touch: bool = True) -> Optional[Dict]:
        """Return the live session record, pushing its expiry forward when ``touch`` is set."""
        if not session_id:
            return None
        now = self.clock()
        conn = self.get_db_connection()
        try:
            row = conn.execute(
                "SELECT session_id, user_id, username, expires_at FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] <= now:
                conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
                conn.commit()
                return None
            record = dict(row)
            if touch:
                record["expires_at"] = now + self.lifetime
                conn.execute(
                    "UPDATE sessions SET expires_at = ? WHERE session_id = ?",
                    (record["expires_at"], session_id),
                )
                conn.commit()
            return record
        finally:
            conn.close()

    def destroy(self, session_id: str) -> int:
        conn = self.get_db_connection()
        try:
            cur = conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    def purge_expired(self) -> int:
        conn = self.get_db_connection()
        try:
            cur = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (self.clock(),))
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()
