"""
Opaque pagination cursors.

A cursor marks the (due_date, id) of the last event handed out on a page. On the
wire it is the URL-safe base64 encoding (padding stripped) of the JSON object
{"dueDate": ..., "id": ...}.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import InvalidCursorError
from .utils import is_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    due_date: str
    id: str


# PUBLIC_INTERFACE
def encode_cursor(event: Mapping[str, Any]) -> str:
    """Return a stable, URL-safe token for the event's (due_date, id)."""
    payload = json.dumps(
        {"dueDate": event["due_date"], "id": event["id"]},
        separators=(",", ":"),
    )
    token = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    return token.rstrip("=")


# PUBLIC_INTERFACE
def decode_cursor(token: Optional[str]) -> Optional[Cursor]:
    """
    Decode a token produced by encode_cursor.

    Returns None when no cursor was supplied (None or blank string).

    Raises:
        InvalidCursorError: if the token is not a well-formed cursor.
    """
    if token is None:
        return None
    raw = token.strip()
    if not raw:
        return None

    try:
        padded = raw + "=" * (-len(raw) % 4)
        decoded = json.loads(base64.b64decode(padded, altchars=b"-_", validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError) as exc:
        logger.debug("Rejected undecodable cursor %r: %s", raw, exc)
        raise InvalidCursorError() from exc

    if not isinstance(decoded, dict):
        raise InvalidCursorError()
    due_date = decoded.get("dueDate")
    event_id = decoded.get("id")
    if not is_iso_date(due_date):
        raise InvalidCursorError()
    if isinstance(event_id, bool) or not isinstance(event_id, (str, int)) or event_id == "":
        raise InvalidCursorError()
    return Cursor(due_date=due_date, id=str(event_id))
