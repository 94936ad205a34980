from __future__ import annotations

from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class EventEntity(TypedDict):
    """
    A tracked event as held by the storage backends.

    Fields:
    - id: Opaque stable identifier (e.g. 'evt_1a2b3c4d')
    - title: Display title (trimmed, non-empty)
    - type: Free-text category, stored lower-cased and trimmed
    - due_date: Calendar date as a 'YYYY-MM-DD' string
    """

    id: str
    title: str
    type: str
    due_date: str


class UserEventEntity(EventEntity):
    """EventEntity with the per-user completion overlay applied."""

    is_completed: bool
    completed_at: Optional[str]


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    id: int
    username_display: str
    username_normalized: str
    password_hash: str
    role: str
    created_at: str


# PUBLIC_INTERFACE
class SessionUser(TypedDict):
    """The authenticated principal resolved from a bearer token."""

    token: str
    user_id: int
    username_display: str
    username_normalized: str
    role: str
