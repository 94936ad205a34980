import base64
import json
import string

import pytest

from src.events_api.cursor import Cursor, decode_cursor, encode_cursor
from src.events_api.errors import InvalidCursorError, ValidationError


def b64(obj) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode("utf-8")).decode("ascii")


class TestEncode:
    def test_round_trip(self):
        token = encode_cursor({"id": "evt_001", "due_date": "2026-02-18", "title": "ignored"})
        assert decode_cursor(token) == Cursor(due_date="2026-02-18", id="evt_001")

    def test_stable_for_same_input(self):
        event = {"id": "evt_xyz", "due_date": "2030-01-01"}
        assert encode_cursor(event) == encode_cursor(dict(event))

    def test_token_is_url_safe(self):
        # ids with characters that would produce '+' or '/' in standard base64
        token = encode_cursor({"id": "evt_???>>>~~~", "due_date": "2026-02-18"})
        allowed = set(string.ascii_letters + string.digits + "-_")
        assert set(token) <= allowed
        assert decode_cursor(token).id == "evt_???>>>~~~"


class TestDecode:
    def test_absent_cursor_is_none(self):
        assert decode_cursor(None) is None
        assert decode_cursor("   ") is None

    def test_accepts_padded_tokens(self):
        token = b64({"dueDate": "2026-02-20", "id": "evt_002"})
        assert decode_cursor(token) == Cursor(due_date="2026-02-20", id="evt_002")

    def test_numeric_id_is_coerced_to_string(self):
        assert decode_cursor(b64({"dueDate": "2026-02-20", "id": 42})).id == "42"

    @pytest.mark.parametrize(
        "token",
        [
            "not a cursor!",
            "%%%%",
            base64.urlsafe_b64encode(b"\xff\xfe\xfd").decode("ascii"),
            b64("just a string"),
            b64([1, 2]),
            b64({"id": "evt_001"}),
            b64({"dueDate": "2026-02-18"}),
            b64({"dueDate": "2026-02-18", "id": ""}),
            b64({"dueDate": "2026-02-18", "id": True}),
            b64({"dueDate": "2026-02-30", "id": "evt_001"}),
            b64({"dueDate": "18/02/2026", "id": "evt_001"}),
            base64.urlsafe_b64encode(b"[" * 100000).decode("ascii"),
        ],
    )
    def test_malformed_tokens_fail(self, token):
        with pytest.raises(InvalidCursorError) as excinfo:
            decode_cursor(token)
        assert excinfo.value.message == "Invalid cursor."

    def test_invalid_cursor_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            decode_cursor("garbage!")
