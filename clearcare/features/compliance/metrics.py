"""Compliance metrics rollup over a set of compliance records."""

import math
from collections import defaultdict
from typing import Any, Dict, List, Sequence

from clearcare.features.compliance.schemas import ComplianceMetrics, TrendPoint


TREND_DAYS = 7


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _average_for_type(records: Sequence[Any], record_type: str) -> int:
    return round_half_up(_average([r.overall_percentage for r in records if r.type == record_type]))


def compliance_trends(records: Sequence[Any], days: int = TREND_DAYS) -> List[TrendPoint]:
    """Average score per UTC calendar day of ``updated_at``, oldest first, last ``days`` days."""
    by_date: Dict[str, List[float]] = defaultdict(list)
    for record in records:
        by_date[record.updated_at.strftime("%Y-%m-%d")].append(record.overall_percentage)

    points = [
        TrendPoint(date=day, score=round_half_up(_average(scores)))
        for day, scores in sorted(by_date.items())
    ]
    return points[-days:]


def compute_metrics(records: Sequence[Any], patient_id: str = "") -> ComplianceMetrics:
    """
    Roll up compliance records.

    Records only need ``type``, ``status``, ``overall_percentage`` and a
    naive-UTC ``updated_at``. An empty sequence yields zeros and no trend.
    """
    if not records:
        return ComplianceMetrics(patient_id=patient_id)

    return ComplianceMetrics(
        patient_id=patient_id,
        overall_score=round_half_up(_average([r.overall_percentage for r in records])),
        medication_adherence=_average_for_type(records, "medication"),
        lifestyle_compliance=_average_for_type(records, "lifestyle"),
        appointment_compliance=_average_for_type(records, "appointment"),
        active_instructions=len(records),
        compliant_instructions=sum(1 for r in records if r.status == "compliant"),
        trends=compliance_trends(records),
    )
