from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Mapping, Optional

from .errors import ConflictError
from .models import EventEntity, SessionUser, UserEntity
from .repositories import EVENT_FIELDS, Repository
from .utils import normalize_role, now_iso

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username_display TEXT NOT NULL,
    username_normalized TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    type TEXT NOT NULL,
    due_date TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS completions (
    user_id INTEGER NOT NULL,
    event_id TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    PRIMARY KEY (user_id, event_id),
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_events_due_date ON events(due_date);
CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id);
CREATE INDEX IF NOT EXISTS idx_completions_user_id ON completions(user_id);
"""

_EVENT_COLUMNS = "id, title, type, due_date"
_USER_COLUMNS = "id, username_display, username_normalized, password_hash, role, created_at"


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA)

    def _row_to_event(self, row: sqlite3.Row) -> EventEntity:
        return {
            "id": str(row["id"]),
            "title": str(row["title"]),
            "type": str(row["type"]),
            "due_date": str(row["due_date"]),
        }

    def _row_to_user(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row["id"]),
            "username_display": str(row["username_display"]),
            "username_normalized": str(row["username_normalized"]),
            "password_hash": str(row["password_hash"]),
            "role": normalize_role(row["role"]),
            "created_at": str(row["created_at"]),
        }

    def fetch_all_events(self) -> List[EventEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events").fetchall()
            return [self._row_to_event(r) for r in rows]

    def fetch_event(self, event_id: str) -> Optional[EventEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)).fetchone()
            return self._row_to_event(row) if row else None

    def insert_event(self, event: EventEntity) -> None:
        timestamp = now_iso()
        try:
            with self._conn() as conn:
                conn.execute(
                    """
                    INSERT INTO events (id, title, type, due_date, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (event["id"], event["title"], event["type"], event["due_date"], timestamp, timestamp),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Event already exists.") from exc

    def update_event(self, event_id: str, fields: Mapping[str, Any]) -> Optional[EventEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)).fetchone()
            if not row:
                return None

            changes = [key for key in EVENT_FIELDS if key in fields]
            if changes:
                assignments = ", ".join(f"{key} = ?" for key in changes)
                conn.execute(
                    f"UPDATE events SET {assignments}, updated_at = ? WHERE id = ?",
                    [*(fields[key] for key in changes), now_iso(), event_id],
                )
            row2 = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)).fetchone()
            assert row2 is not None
            return self._row_to_event(row2)

    def delete_event(self, event_id: str) -> Optional[EventEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)).fetchone()
            if not row:
                return None
            conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
            return self._row_to_event(row)

    def fetch_completions_for_user(self, user_id: int) -> Dict[str, str]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT event_id, completed_at FROM completions WHERE user_id = ?", (user_id,)
            ).fetchall()
            return {str(r["event_id"]): str(r["completed_at"]) for r in rows}

    def toggle_completion(self, user_id: int, event_id: str, completed_at: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                "DELETE FROM completions WHERE user_id = ? AND event_id = ?", (user_id, event_id)
            )
            if cur.rowcount > 0:
                return False
            conn.execute(
                "INSERT INTO completions (user_id, event_id, completed_at) VALUES (?, ?, ?)",
                (user_id, event_id, completed_at),
            )
            return True

    def completed_event_ids(self, user_id: int) -> List[str]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT event_id FROM completions WHERE user_id = ? ORDER BY event_id", (user_id,)
            ).fetchall()
            return [str(r["event_id"]) for r in rows]

    def create_user(self, username_display: str, username_normalized: str, password_hash: str, role: str) -> UserEntity:
        try:
            with self._conn() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (username_display, username_normalized, password_hash, role, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (username_display, username_normalized, password_hash, normalize_role(role), now_iso()),
                )
                row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
                assert row is not None
                return self._row_to_user(row)
        except sqlite3.IntegrityError as exc:
            raise ConflictError("User already exists.") from exc

    def fetch_user_by_username(self, username_normalized: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE username_normalized = ?", (username_normalized,)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def count_admins(self) -> int:
        with self._conn() as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM users WHERE role = 'admin'").fetchone()
            return int(row["cnt"]) if row else 0

    def create_session(self, token: str, user_id: int) -> None:
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, created_at) VALUES (?, ?, ?)",
                (token, user_id, now_iso()),
            )

    def fetch_session(self, token: str) -> Optional[SessionUser]:
        with self._conn() as conn:
            row = conn.execute(
                """
                SELECT s.token AS token, u.id AS user_id, u.username_display AS username_display,
                       u.username_normalized AS username_normalized, u.role AS role
                FROM sessions s
                JOIN users u ON u.id = s.user_id
                WHERE s.token = ?
                """,
                (token,),
            ).fetchone()
            if not row:
                return None
            return {
                "token": str(row["token"]),
                "user_id": int(row["user_id"]),
                "username_display": str(row["username_display"]),
                "username_normalized": str(row["username_normalized"]),
                "role": normalize_role(row["role"]),
            }

    def delete_session(self, token: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
