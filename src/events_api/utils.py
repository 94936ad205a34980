from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_VALID_ROLES = {"admin", "user"}


# PUBLIC_INTERFACE
def is_iso_date(value: Any) -> bool:
    """
    Return True if value is a 'YYYY-MM-DD' string naming a real calendar date.
    """
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def normalize_event_type(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def normalize_username(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def normalize_role(value: Optional[str]) -> str:
    role = (value or "").strip().lower()
    return role if role in _VALID_ROLES else "user"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# PUBLIC_INTERFACE
def cursor_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    next_cursor: Optional[str],
    meta: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Build a standard cursor-pagination envelope for list endpoints.

    Args:
        items: The list/iterable of items for the current page.
        next_cursor: Opaque token for the next page, or None on the last page.
        meta: Echo of the normalized query (scope, limit and, for users, status).

    Returns:
        Dict with keys: items, next_cursor, meta.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    return {
        "items": materialized,
        "next_cursor": next_cursor,
        "meta": meta,
    }
