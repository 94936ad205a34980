from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ..auth import get_current_user
from ..completions import filter_by_status, overlay_completions, toggle_completion
from ..models import SessionUser
from ..query import filter_and_sort, paginate, parse_list_query
from ..repositories import Repository, get_repository
from ..schemas import CompletedIds, EventPage, ToggleRequest, UserEventPage
from ..utils import cursor_envelope

router = APIRouter(
    prefix="/api",
    tags=["events"],
)

_LIST_DESCRIPTION = (
    "Query parameters:\n"
    "- scope: upcoming (default), past or all; events due today count as upcoming\n"
    "- from / to: inclusive YYYY-MM-DD bounds on the due date\n"
    "- type: category filter; repeat the key or pass a comma-separated list\n"
    "- limit: page size between 1 and 100 (default 25)\n"
    "- cursor: nextCursor from the previous page\n"
)


# PUBLIC_INTERFACE
def get_today() -> date:
    """Server-local calendar date used for the upcoming/past boundary."""
    return date.today()


RawParams = Dict[str, Optional[List[str]]]


def list_params(
    scope: Optional[List[str]] = Query(None, description="upcoming (default), past or all"),
    date_from: Optional[List[str]] = Query(None, alias="from", description="Inclusive lower due date, YYYY-MM-DD"),
    date_to: Optional[List[str]] = Query(None, alias="to", description="Inclusive upper due date, YYYY-MM-DD"),
    event_type: Optional[List[str]] = Query(None, alias="type", description="Category filter; repeatable and comma-separated"),
    limit: Optional[List[str]] = Query(None, description="Page size between 1 and 100 (default 25)"),
    cursor: Optional[List[str]] = Query(None, description="nextCursor from the previous page"),
) -> RawParams:
    """
    Collect every occurrence of each list parameter. Values stay raw strings so
    parse_list_query owns validation and the first-occurrence rule.
    """
    return {"scope": scope, "from": date_from, "to": date_to, "type": event_type, "limit": limit, "cursor": cursor}


# PUBLIC_INTERFACE
@router.get(
    "/events",
    response_model=EventPage,
    summary="List Events",
    description="List events with scope, date and type filters and cursor pagination.\n\n" + _LIST_DESCRIPTION,
    responses={
        200: {"description": "Page retrieved successfully"},
        400: {"description": "Invalid query parameters or cursor"},
    },
)
def list_events(
    params: RawParams = Depends(list_params),
    repo: Repository = Depends(get_repository),
    today: date = Depends(get_today),
) -> EventPage:
    """
    Public event listing.
    """
    query = parse_list_query(params)
    ordered = filter_and_sort(repo.fetch_all_events(), query, today)
    page = paginate(ordered, query.cursor, query.limit)
    envelope = cursor_envelope(
        items=page.items,
        next_cursor=page.next_cursor,
        meta={"scope": query.scope, "limit": query.limit},
    )
    return EventPage.model_validate(envelope)


# PUBLIC_INTERFACE
@router.get(
    "/me/events",
    response_model=UserEventPage,
    summary="List My Events",
    description=(
        "List events with the caller's completion state.\n\n"
        + _LIST_DESCRIPTION
        + "- status: todo (default), done or all\n"
    ),
    responses={
        200: {"description": "Page retrieved successfully"},
        400: {"description": "Invalid query parameters or cursor"},
        401: {"description": "Missing or unknown bearer token"},
    },
)
def list_my_events(
    params: RawParams = Depends(list_params),
    status: Optional[List[str]] = Query(None, description="todo (default), done or all"),
    user: SessionUser = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
    today: date = Depends(get_today),
) -> UserEventPage:
    """
    Per-user event listing. Status filtering runs after the scope, date and type
    filters and before pagination, so cursors index the status-filtered sequence.
    """
    query = parse_list_query({**params, "status": status}, include_status=True)
    completion_map = repo.fetch_completions_for_user(user["user_id"])
    ordered = filter_and_sort(repo.fetch_all_events(), query, today)
    ordered = filter_by_status(ordered, completion_map, query.status)
    page = paginate(ordered, query.cursor, query.limit)
    envelope = cursor_envelope(
        items=overlay_completions(page.items, completion_map),
        next_cursor=page.next_cursor,
        meta={"status": query.status, "scope": query.scope, "limit": query.limit},
    )
    return UserEventPage.model_validate(envelope)


# PUBLIC_INTERFACE
@router.post(
    "/me/toggle",
    response_model=CompletedIds,
    summary="Toggle Completion",
    description="Mark an event done, or back to todo if it was already done.",
    responses={
        200: {"description": "Completion flipped"},
        400: {"description": "eventId missing"},
        401: {"description": "Missing or unknown bearer token"},
        404: {"description": "Event not found"},
    },
)
def toggle_my_event(
    payload: ToggleRequest,
    user: SessionUser = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> CompletedIds:
    completed = toggle_completion(repo, user["user_id"], payload.event_id)
    return CompletedIds(completed=completed)
