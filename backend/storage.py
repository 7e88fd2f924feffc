"""sqlite-backed credential store for user records."""

import sqlite3
from pathlib import Path
from typing import Dict, Optional

from errors import ConflictError


class CredentialStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def get_db_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        conn = self.get_db_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def exists(self, username: str, email: str) -> bool:
        conn = self.get_db_connection()
        try:
            row = conn.execute(
                "SELECT 1 FROM users WHERE username = ? OR email = ? LIMIT 1",
                (username, email),
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def create_user(self, username: str, email: str, password_hash: str) -> Dict:
        conn = self.get_db_connection()
        try:
            cur = conn.execute(
                """
                INSERT INTO users (username, email, password_hash)
                VALUES (?, ?, ?)
                """,
                (username, email, password_hash),
            )
            conn.commit()
            user_id = cur.lastrowid
        except sqlite3.IntegrityError as exc:
            # A concurrent sign-up can pass exists() before either insert commits.
            raise ConflictError("Username or email already exists") from exc
        finally:
            conn.close()
        return self.get_user(user_id)

    def get_user(self, user_id: int) -> Optional[Dict]:
        conn = self.get_db_connection()
        try:
            row = conn.execute(
                """
                SELECT id, username, email, password_hash, created_at
                FROM users
                WHERE id = ?
                """,
                (user_id,),
            ).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def find_by_email(self, email: str) -> Optional[Dict]:
        conn = self.get_db_connection()
        try:
            row = conn.execute(
                """
                SELECT id, username, email, password_hash, created_at
                FROM users
                WHERE email = ?
                """,
                (email,),
            ).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()
