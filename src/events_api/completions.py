from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from .errors import NotFoundError, ValidationError
from .models import EventEntity, UserEventEntity
from .repositories import Repository
from .utils import now_iso

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def filter_by_status(
    events: Sequence[EventEntity],
    completion_map: Mapping[str, str],
    status: Optional[str],
) -> List[EventEntity]:
    """Keep undone events for 'todo', done events for 'done', everything otherwise."""
    if status == "todo":
        return [e for e in events if e["id"] not in completion_map]
    if status == "done":
        return [e for e in events if e["id"] in completion_map]
    return list(events)


# PUBLIC_INTERFACE
def overlay_completions(
    events: Sequence[EventEntity],
    completion_map: Mapping[str, str],
) -> List[UserEventEntity]:
    """Return copies of events carrying is_completed and completed_at."""
    overlaid: List[UserEventEntity] = []
    for event in events:
        completed_at = completion_map.get(event["id"])
        overlaid.append(
            {
                **event,
                "is_completed": event["id"] in completion_map,
                "completed_at": completed_at,
            }  # type: ignore[typeddict-item]
        )
    return overlaid


# PUBLIC_INTERFACE
def toggle_completion(repo: Repository, user_id: int, event_id: Optional[str]) -> List[str]:
    """
    Flip the user's completion record for event_id.

    Returns:
        The user's completed event ids after the flip, sorted.

    Raises:
        ValidationError: if event_id is blank.
        NotFoundError: if the event does not exist.
    """
    event_id = (event_id or "").strip()
    if not event_id:
        raise ValidationError("Event required.")
    if repo.fetch_event(event_id) is None:
        raise NotFoundError("Event not found.")

    completed = repo.toggle_completion(user_id, event_id, now_iso())
    logger.info("User %s marked %s as %s", user_id, event_id, "done" if completed else "todo")
    return repo.completed_event_ids(user_id)
