"""Tests for adherence recompute and status mapping."""

from types import SimpleNamespace

import pytest

from clearcare.features.compliance.adherence import (
    apply_check_in,
    apply_dose,
    completion_ratio,
    compliance_status,
)
from clearcare.features.compliance.models import CheckIn, DoseEntry


def dose(date, time=None, status=None, reason=None):
    return SimpleNamespace(date=date, time=time, status=status, reason=reason)


def check_in(date, completed=None, notes=None, metrics=None, progress=None):
    return SimpleNamespace(date=date, completed=completed, notes=notes, metrics=metrics, progress=progress)


@pytest.mark.parametrize(
    "progress, expected",
    [
        (100, "compliant"),
        (99.9, "partial"),
        (80, "partial"),
        (0.1, "partial"),
        (0, "non-compliant"),
    ],
)
def test_compliance_status(progress, expected):
    assert compliance_status(progress) == expected


def test_completion_ratio_empty():
    assert completion_ratio([], lambda e: True) == 0.0


def test_first_dose_appended_with_defaults():
    result = apply_dose([], dose("2024-01-20"))
    assert result.entries == [DoseEntry(date="2024-01-20", time="", status="pending", reason="")]
    assert result.computed_progress == 0
    assert result.status == "non-compliant"


def test_medication_progress_is_share_of_taken():
    schedule = [
        DoseEntry(date="2024-01-20", time="08:00", status="taken"),
        DoseEntry(date="2024-01-20", time="20:00", status="missed", reason="forgot"),
    ]
    result = apply_dose(schedule, dose("2024-01-21", "08:00", "taken"))

    assert len(result.entries) == 3
    assert result.computed_progress == pytest.approx(200 / 3)
    assert result.progress == result.computed_progress
    assert result.status == "partial"


def test_matching_dose_updated_in_place_keeping_reason():
    schedule = [DoseEntry(date="2024-01-20", time="08:00", status="missed", reason="asleep")]
    result = apply_dose(schedule, dose("2024-01-20", "08:00", "taken"))

    assert len(result.entries) == 1
    assert result.entries[0].status == "taken"
    assert result.entries[0].reason == "asleep"
    assert result.status == "compliant"
    # input list untouched
    assert schedule[0].status == "missed"


def test_matching_dose_keeps_status_when_omitted():
    schedule = [DoseEntry(date="2024-01-20", time="08:00", status="taken")]
    result = apply_dose(schedule, dose("2024-01-20", "08:00", reason="late"))
    assert result.entries[0].status == "taken"
    assert result.entries[0].reason == "late"


def test_progress_override_persisted_but_status_from_computed():
    result = apply_dose([], dose("2024-01-20", "08:00", "missed"), override=50)
    assert result.progress == 50
    assert result.computed_progress == 0
    assert result.status == "non-compliant"


def test_check_ins_always_append():
    existing = [CheckIn(date="2024-01-20", completed=True)]
    result = apply_check_in(existing, check_in("2024-01-20"))

    assert len(result.entries) == 2
    assert result.entries[1] == CheckIn(date="2024-01-20", completed=False, notes="", metrics={}, progress=0)
    assert result.computed_progress == 50
    assert result.status == "partial"


def test_all_check_ins_completed():
    result = apply_check_in([], check_in("2024-01-20", completed=True, metrics={"steps": 9000}))
    assert result.computed_progress == 100
    assert result.status == "compliant"
    assert result.entries[0].metrics == {"steps": 9000}
