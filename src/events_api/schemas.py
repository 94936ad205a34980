from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .utils import is_iso_date, normalize_event_type


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not s:
        raise ValueError("title cannot be empty.")
    return s


def _clean_type(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    t = normalize_event_type(v)
    if not t:
        raise ValueError("type cannot be empty.")
    return t


def _clean_due_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not is_iso_date(s):
        raise ValueError("dueDate must use YYYY-MM-DD.")
    return s


# PUBLIC_INTERFACE
class EventCreate(CamelModel):
    """
    Schema for creating a new event (admin only).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {"title": "Week 2 Homework", "type": "homework", "dueDate": "2026-02-18"}
        },
    )

    title: str = Field(..., description="Display title", max_length=200)
    type: str = Field(..., description="Category such as homework, quiz or assignment")
    due_date: str = Field(..., description="Due date as YYYY-MM-DD")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        return _clean_type(v)  # type: ignore[return-value]

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: str) -> str:
        return _clean_due_date(v)  # type: ignore[return-value]


# PUBLIC_INTERFACE
class EventUpdate(CamelModel):
    """
    Schema for editing an event (admin only).
    All fields are optional; only provided fields will be updated.
    """

    title: Optional[str] = Field(default=None, description="Display title", max_length=200)
    type: Optional[str] = Field(default=None, description="Category")
    due_date: Optional[str] = Field(default=None, description="Due date as YYYY-MM-DD")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Optional[str]) -> Optional[str]:
        return _clean_type(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: Optional[str]) -> Optional[str]:
        return _clean_due_date(v)

    def changes(self) -> dict:
        """Return only the fields that were sent with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


# PUBLIC_INTERFACE
class EventOut(CamelModel):
    """
    Schema returned by the API for an event.
    """

    id: str = Field(..., description="Unique identifier of the event")
    title: str = Field(..., description="Display title")
    type: str = Field(..., description="Lower-cased category")
    due_date: str = Field(..., description="Due date as YYYY-MM-DD")


class UserEventOut(EventOut):
    """Event with the caller's completion state."""

    is_completed: bool = Field(..., description="Whether the caller marked the event done")
    completed_at: Optional[str] = Field(default=None, description="When the caller marked it done")


class ListMeta(CamelModel):
    scope: str
    limit: int


class UserListMeta(ListMeta):
    status: str


class EventPage(CamelModel):
    """
    Envelope for cursor-paginated event lists.
    """

    items: List[EventOut] = Field(..., description="Events on this page")
    next_cursor: Optional[str] = Field(..., description="Opaque token for the next page, null on the last page")
    meta: ListMeta


class UserEventPage(CamelModel):
    items: List[UserEventOut]
    next_cursor: Optional[str]
    meta: UserListMeta


class EventEnvelope(BaseModel):
    event: EventOut


class RemovedEnvelope(BaseModel):
    removed: EventOut


class ToggleRequest(CamelModel):
    event_id: Optional[str] = Field(default=None, description="Id of the event to flip")


class CompletedIds(BaseModel):
    completed: List[str] = Field(..., description="Ids of every event the caller has completed")


class RegisterRequest(BaseModel):
    username: str = ""
    password: str = ""


class RegisterResponse(BaseModel):
    ok: bool = True
    role: str


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str
    username: str
    role: str


class MeResponse(BaseModel):
    username: str
    role: str
    completed: List[str]
