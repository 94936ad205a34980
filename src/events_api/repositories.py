from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConflictError
from .models import EventEntity, SessionUser, UserEntity
from .settings import get_settings
from .utils import normalize_role, now_iso

logger = logging.getLogger(__name__)

EVENT_FIELDS = ("title", "type", "due_date")


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract storage contract for events, completions, users and sessions."""

    backend_name: str = "abstract"

    # Events

    @abstractmethod
    def fetch_all_events(self) -> List[EventEntity]:
        """Return a snapshot of every event, in no particular order."""

    @abstractmethod
    def fetch_event(self, event_id: str) -> Optional[EventEntity]:
        """Return an event by id, or None if not found."""

    @abstractmethod
    def insert_event(self, event: EventEntity) -> None:
        """Store a new event. Raises ConflictError if the id is taken."""

    @abstractmethod
    def update_event(self, event_id: str, fields: Mapping[str, Any]) -> Optional[EventEntity]:
        """Apply title/type/due_date changes. Return the updated event or None if not found."""

    @abstractmethod
    def delete_event(self, event_id: str) -> Optional[EventEntity]:
        """Delete an event and its completions. Return the removed event or None if not found."""

    # Completions

    @abstractmethod
    def fetch_completions_for_user(self, user_id: int) -> Dict[str, str]:
        """Return {event_id: completed_at} for the user."""

    @abstractmethod
    def toggle_completion(self, user_id: int, event_id: str, completed_at: str) -> bool:
        """
        Delete the user's completion record for event_id if present, else insert
        one stamped with completed_at. Return True if the event is now completed.
        """

    @abstractmethod
    def completed_event_ids(self, user_id: int) -> List[str]:
        """Return the user's completed event ids, sorted."""

    # Users and sessions

    @abstractmethod
    def create_user(self, username_display: str, username_normalized: str, password_hash: str, role: str) -> UserEntity:
        """Create a user. Raises ConflictError if the normalized username is taken."""

    @abstractmethod
    def fetch_user_by_username(self, username_normalized: str) -> Optional[UserEntity]:
        """Return a user by normalized username, or None."""

    @abstractmethod
    def count_admins(self) -> int:
        """Return the number of users holding the admin role."""

    @abstractmethod
    def create_session(self, token: str, user_id: int) -> None:
        """Bind a bearer token to a user."""

    @abstractmethod
    def fetch_session(self, token: str) -> Optional[SessionUser]:
        """Resolve a bearer token to its user, or None."""

    @abstractmethod
    def delete_session(self, token: str) -> None:
        """Forget a bearer token."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._events: dict[str, EventEntity] = {}
        self._completions: dict[int, dict[str, str]] = {}
        self._users: dict[int, UserEntity] = {}
        self._sessions: dict[str, int] = {}
        self._next_user_id = 1

    def fetch_all_events(self) -> List[EventEntity]:
        with self._lock:
            return [e.copy() for e in self._events.values()]

    def fetch_event(self, event_id: str) -> Optional[EventEntity]:
        with self._lock:
            item = self._events.get(event_id)
            return None if item is None else item.copy()

    def insert_event(self, event: EventEntity) -> None:
        with self._lock:
            if event["id"] in self._events:
                raise ConflictError("Event already exists.")
            self._events[event["id"]] = event.copy()

    def update_event(self, event_id: str, fields: Mapping[str, Any]) -> Optional[EventEntity]:
        with self._lock:
            existing = self._events.get(event_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            for key in EVENT_FIELDS:
                if key in fields:
                    updated[key] = fields[key]  # type: ignore[literal-required]

            self._events[event_id] = updated
            return updated.copy()

    def delete_event(self, event_id: str) -> Optional[EventEntity]:
        with self._lock:
            removed = self._events.pop(event_id, None)
            if removed is not None:
                for completed in self._completions.values():
                    completed.pop(event_id, None)
            return removed

    def fetch_completions_for_user(self, user_id: int) -> Dict[str, str]:
        with self._lock:
            return dict(self._completions.get(user_id, {}))

    def toggle_completion(self, user_id: int, event_id: str, completed_at: str) -> bool:
        with self._lock:
            completed = self._completions.setdefault(user_id, {})
            if event_id in completed:
                del completed[event_id]
                return False
            completed[event_id] = completed_at
            return True

    def completed_event_ids(self, user_id: int) -> List[str]:
        with self._lock:
            return sorted(self._completions.get(user_id, {}))

    def create_user(self, username_display: str, username_normalized: str, password_hash: str, role: str) -> UserEntity:
        with self._lock:
            if any(u["username_normalized"] == username_normalized for u in self._users.values()):
                raise ConflictError("User already exists.")
            user: UserEntity = {
                "id": self._next_user_id,
                "username_display": username_display,
                "username_normalized": username_normalized,
                "password_hash": password_hash,
                "role": normalize_role(role),
                "created_at": now_iso(),
            }
            self._next_user_id += 1
            self._users[user["id"]] = user
            return user.copy()

    def fetch_user_by_username(self, username_normalized: str) -> Optional[UserEntity]:
        with self._lock:
            for user in self._users.values():
                if user["username_normalized"] == username_normalized:
                    return user.copy()
            return None

    def count_admins(self) -> int:
        with self._lock:
            return sum(1 for u in self._users.values() if u["role"] == "admin")

    def create_session(self, token: str, user_id: int) -> None:
        with self._lock:
            self._sessions[token] = user_id

    def fetch_session(self, token: str) -> Optional[SessionUser]:
        with self._lock:
            user_id = self._sessions.get(token)
            user = self._users.get(user_id) if user_id is not None else None
            if user is None:
                return None
            return {
                "token": token,
                "user_id": user["id"],
                "username_display": user["username_display"],
                "username_normalized": user["username_normalized"],
                "role": normalize_role(user["role"]),
            }

    def delete_session(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository configured by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository at SQLITE_DB_PATH
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite storage at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory storage")
    return InMemoryRepository()
