from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, status

from ..auth import require_admin
from ..errors import NotFoundError
from ..models import EventEntity
from ..repositories import Repository, get_repository
from ..schemas import EventCreate, EventEnvelope, EventOut, EventUpdate, RemovedEnvelope

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/events",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _new_event_id() -> str:
    return f"evt_{secrets.token_hex(4)}"


def existing_event_id(event_id: str, repo: Repository = Depends(get_repository)) -> str:
    """Resolve the path id to a stored event; runs before the body is validated."""
    if repo.fetch_event(event_id) is None:
        raise NotFoundError("Event not found.")
    return event_id


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=EventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
    description="Create a new event with a generated id.",
    responses={
        201: {"description": "Event created successfully"},
        400: {"description": "Validation error"},
        409: {"description": "Generated id already taken"},
    },
)
def create_event(payload: EventCreate, repo: Repository = Depends(get_repository)) -> EventEnvelope:
    event: EventEntity = {
        "id": _new_event_id(),
        "title": payload.title,
        "type": payload.type,
        "due_date": payload.due_date,
    }
    repo.insert_event(event)
    logger.info("Created event %s (%s, due %s)", event["id"], event["type"], event["due_date"])
    return EventEnvelope(event=EventOut.model_validate(event))


# PUBLIC_INTERFACE
@router.patch(
    "/{event_id}",
    response_model=EventEnvelope,
    summary="Update Event",
    description="Partially update the title, type or due date of an event.",
    responses={
        200: {"description": "Event updated"},
        400: {"description": "Validation error"},
        404: {"description": "Event not found"},
    },
)
def patch_event(
    payload: EventUpdate,
    event_id: str = Depends(existing_event_id),
    repo: Repository = Depends(get_repository),
) -> EventEnvelope:
    changes = payload.changes()
    updated = repo.update_event(event_id, changes)
    if updated is None:
        raise NotFoundError("Event not found.")
    if changes:
        logger.info("Updated event %s: %s", event_id, ", ".join(sorted(changes)))
    return EventEnvelope(event=EventOut.model_validate(updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{event_id}",
    response_model=RemovedEnvelope,
    summary="Delete Event",
    description="Delete an event together with every user's completion record for it.",
    responses={
        200: {"description": "Event deleted"},
        404: {"description": "Event not found"},
    },
)
def delete_event(event_id: str, repo: Repository = Depends(get_repository)) -> RemovedEnvelope:
    removed = repo.delete_event(event_id)
    if removed is None:
        raise NotFoundError("Event not found.")
    logger.info("Deleted event %s", event_id)
    return RemovedEnvelope(removed=EventOut.model_validate(removed))
