import pytest

from src.events_api.completions import filter_by_status, overlay_completions, toggle_completion
from src.events_api.errors import NotFoundError, ValidationError

from .conftest import SEED_EVENTS

COMPLETIONS = {"evt_002": "2026-02-19T10:00:00.000Z"}


class TestStatusFilter:
    def test_todo_keeps_undone(self):
        kept = filter_by_status(SEED_EVENTS, COMPLETIONS, "todo")
        assert "evt_002" not in [e["id"] for e in kept]
        assert len(kept) == len(SEED_EVENTS) - 1

    def test_done_keeps_completed(self):
        assert [e["id"] for e in filter_by_status(SEED_EVENTS, COMPLETIONS, "done")] == ["evt_002"]

    def test_all_keeps_everything_in_order(self):
        assert filter_by_status(SEED_EVENTS, COMPLETIONS, "all") == SEED_EVENTS

    def test_done_with_no_completions_is_empty(self):
        assert filter_by_status(SEED_EVENTS, {}, "done") == []


class TestOverlay:
    def test_adds_completion_fields(self):
        overlaid = overlay_completions(SEED_EVENTS[:2], COMPLETIONS)
        assert overlaid[0]["is_completed"] is False
        assert overlaid[0]["completed_at"] is None
        assert overlaid[1]["is_completed"] is True
        assert overlaid[1]["completed_at"] == "2026-02-19T10:00:00.000Z"
        assert overlaid[1]["title"] == "Quiz 1"

    def test_leaves_inputs_untouched(self):
        overlay_completions(SEED_EVENTS, COMPLETIONS)
        assert "is_completed" not in SEED_EVENTS[0]


class TestToggle:
    def test_flips_back_and_forth(self, repo):
        assert toggle_completion(repo, 1, "evt_003") == ["evt_003"]
        assert toggle_completion(repo, 1, "evt_001") == ["evt_001", "evt_003"]
        completed_at = repo.fetch_completions_for_user(1)["evt_003"]
        assert completed_at.endswith("Z")

        assert toggle_completion(repo, 1, "evt_003") == ["evt_001"]
        assert "evt_003" not in repo.fetch_completions_for_user(1)

    def test_completions_are_per_user(self, repo):
        toggle_completion(repo, 1, "evt_001")
        assert repo.fetch_completions_for_user(2) == {}

    def test_unknown_event(self, repo):
        with pytest.raises(NotFoundError, match="Event not found."):
            toggle_completion(repo, 1, "evt_missing")
        assert repo.fetch_completions_for_user(1) == {}

    @pytest.mark.parametrize("event_id", [None, "", "   "])
    def test_blank_event_id(self, repo, event_id):
        with pytest.raises(ValidationError, match="Event required."):
            toggle_completion(repo, 1, event_id)
