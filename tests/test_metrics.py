"""Tests for the compliance metrics rollup."""

from datetime import datetime, timedelta
from types import SimpleNamespace

from clearcare.features.compliance.metrics import compute_metrics, round_half_up


def record(pct, type_="medication", status="partial", updated_at=None):
    return SimpleNamespace(
        overall_percentage=pct,
        type=type_,
        status=status,
        updated_at=updated_at or datetime(2024, 1, 20, 12, 0),
        patient_id="p1",
    )


def test_empty_input_gives_zeros():
    metrics = compute_metrics([])
    assert metrics.overall_score == 0
    assert metrics.medication_adherence == 0
    assert metrics.lifestyle_compliance == 0
    assert metrics.appointment_compliance == 0
    assert metrics.active_instructions == 0
    assert metrics.compliant_instructions == 0
    assert metrics.trends == []
    assert metrics.patient_id == ""


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(66.4) == 66
    assert round_half_up(66.67) == 67


def test_averages_and_counts():
    records = [
        record(100, "medication", "compliant"),
        record(50, "medication"),
        record(25, "lifestyle"),
        record(0, "appointment", "non-compliant"),
    ]
    metrics = compute_metrics(records, patient_id="p1")

    assert metrics.patient_id == "p1"
    assert metrics.overall_score == 44  # 175 / 4 = 43.75
    assert metrics.medication_adherence == 75
    assert metrics.lifestyle_compliance == 25
    assert metrics.appointment_compliance == 0
    assert metrics.active_instructions == 4
    assert metrics.compliant_instructions == 1


def test_trend_groups_by_day_and_sorts_ascending():
    day = datetime(2024, 1, 20, 9, 30)
    records = [
        record(100, updated_at=day + timedelta(days=1)),
        record(40, updated_at=day),
        record(60, updated_at=day.replace(hour=23, minute=59)),
    ]
    trends = compute_metrics(records).trends

    assert [(t.date, t.score) for t in trends] == [("2024-01-20", 50), ("2024-01-21", 100)]


def test_trend_keeps_last_seven_days():
    start = datetime(2024, 1, 1)
    records = [record(i * 10, updated_at=start + timedelta(days=i)) for i in range(10)]
    trends = compute_metrics(records).trends

    assert len(trends) == 7
    assert trends[0].date == "2024-01-04"
    assert trends[-1].date == "2024-01-10"
    assert [t.date for t in trends] == sorted(t.date for t in trends)
