"""Tests for the acknowledgment state machine."""

from datetime import datetime

from clearcare.features.instructions.acknowledgment import is_fully_acknowledged, next_state


NOW = datetime(2024, 1, 20, 10, 0)
EARLIER = datetime(2024, 1, 19, 10, 0)


def test_requires_all_three_types():
    assert not is_fully_acknowledged(["receipt", "understanding"])
    assert is_fully_acknowledged(["commitment", "receipt", "understanding"])
    assert is_fully_acknowledged(["receipt", "receipt", "understanding", "commitment"])


def test_partial_acknowledgment_keeps_status():
    state = next_state("active", None, ["receipt"], NOW)
    assert state.status == "active"
    assert state.acknowledged_date is None


def test_transition_sets_acknowledged_date():
    state = next_state("active", None, ["receipt", "understanding", "commitment"], NOW)
    assert state.status == "acknowledged"
    assert state.acknowledged_date == NOW


def test_repeat_acknowledgment_does_not_move_date():
    types = ["receipt", "understanding", "commitment", "receipt"]
    state = next_state("acknowledged", EARLIER, types, NOW)
    assert state.status == "acknowledged"
    assert state.acknowledged_date == EARLIER


def test_only_active_instructions_transition():
    types = ["receipt", "understanding", "commitment"]
    for status in ("draft", "completed", "expired", "cancelled"):
        state = next_state(status, None, types, NOW)
        assert state.status == status
        assert state.acknowledged_date is None
