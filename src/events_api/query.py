from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Union

from .cursor import Cursor, decode_cursor, encode_cursor
from .errors import InvalidCursorError, ValidationError
from .models import EventEntity
from .utils import is_iso_date, normalize_event_type

logger = logging.getLogger(__name__)

VALID_SCOPES = ("upcoming", "past", "all")
VALID_STATUSES = ("todo", "done", "all")
DEFAULT_LIMIT = 25
MAX_LIMIT = 100

RawParam = Union[str, Sequence[str], None]
_DIGITS_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class ListQuery:
    """
    Normalized parameters for listing events.
    """
    scope: str = "upcoming"  # allowed: upcoming, past, all
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    types: FrozenSet[str] = field(default_factory=frozenset)
    limit: int = DEFAULT_LIMIT
    cursor: Optional[Cursor] = None
    status: Optional[str] = None  # todo, done, all; only set for per-user listings


@dataclass(frozen=True)
class Page:
    items: List[Any]
    next_cursor: Optional[str]


def _first(value: RawParam) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return value[0] if len(value) > 0 else None


def _all(value: RawParam) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _parse_types(raw: RawParam) -> FrozenSet[str]:
    types = (normalize_event_type(part) for value in _all(raw) for part in value.split(","))
    return frozenset(t for t in types if t)


def _parse_date(raw: RawParam, name: str) -> Optional[str]:
    value = (_first(raw) or "").strip()
    if not value:
        return None
    if not is_iso_date(value):
        raise ValidationError(f"{name} must use YYYY-MM-DD.")
    return value


def _parse_limit(raw: RawParam) -> int:
    if raw is None:
        return DEFAULT_LIMIT
    value = (_first(raw) or "").strip()
    limit = int(value) if _DIGITS_RE.match(value) else 0
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be an integer between 1 and {MAX_LIMIT}.")
    return limit


# PUBLIC_INTERFACE
def parse_list_query(params: Mapping[str, RawParam], include_status: bool = False) -> ListQuery:
    """
    Validate raw request parameters and build a ListQuery.

    Each value in params may be a single string or a list of strings (repeated
    query keys). Scalar fields use the first occurrence; 'type' uses all of them
    and also accepts comma-separated lists.

    Raises:
        ValidationError: on any invalid field (InvalidCursorError for the cursor).
    """
    scope = (_first(params.get("scope")) or "upcoming").strip().lower() or "upcoming"
    if scope not in VALID_SCOPES:
        raise ValidationError("scope must be one of: upcoming, past, all.")

    date_from = _parse_date(params.get("from"), "from")
    date_to = _parse_date(params.get("to"), "to")
    if date_from and date_to and date_from > date_to:
        raise ValidationError("from cannot be greater than to.")

    status = None
    if include_status:
        status = (_first(params.get("status")) or "todo").strip().lower() or "todo"
        if status not in VALID_STATUSES:
            raise ValidationError("status must be one of: todo, done, all.")

    return ListQuery(
        scope=scope,
        date_from=date_from,
        date_to=date_to,
        types=_parse_types(params.get("type")),
        limit=_parse_limit(params.get("limit")),
        cursor=decode_cursor(_first(params.get("cursor"))),
        status=status,
    )


def _sort_key(event: EventEntity):
    return (event["due_date"], event["id"])


# PUBLIC_INTERFACE
def filter_and_sort(
    events: Sequence[EventEntity],
    query: ListQuery,
    today: Optional[date] = None,
) -> List[EventEntity]:
    """
    Apply scope, date-range and type predicates, then order the survivors.

    'today' defaults to the server's local calendar date. Events due today are
    upcoming, not past. Ordering is by (due_date, id), descending for the past
    scope, so equal due dates still give a total order.
    """
    today_iso = (today or date.today()).isoformat()

    def keep(event: EventEntity) -> bool:
        due = event["due_date"]
        if query.scope == "upcoming" and due < today_iso:
            return False
        if query.scope == "past" and due >= today_iso:
            return False
        if query.date_from and due < query.date_from:
            return False
        if query.date_to and due > query.date_to:
            return False
        if query.types and normalize_event_type(event["type"]) not in query.types:
            return False
        return True

    return sorted(
        (e for e in events if keep(e)),
        key=_sort_key,
        reverse=query.scope == "past",
    )


# PUBLIC_INTERFACE
def paginate(items: Sequence[Any], cursor: Optional[Cursor], limit: int) -> Page:
    """
    Return up to 'limit' items following the cursor position.

    Raises:
        InvalidCursorError: if no item matches the cursor's (id, due_date).
    """
    start = 0
    if cursor is not None:
        for index, item in enumerate(items):
            if item["id"] == cursor.id and item["due_date"] == cursor.due_date:
                start = index + 1
                break
        else:
            logger.debug("Cursor %s/%s not found in %d items", cursor.due_date, cursor.id, len(items))
            raise InvalidCursorError()

    page = list(items[start:start + limit])
    has_more = start + limit < len(items)
    next_cursor = encode_cursor(page[-1]) if has_more and page else None
    return Page(items=page, next_cursor=next_cursor)
