# Compliance Tracking Feature - Models

from typing import Optional, List, Literal
from datetime import datetime
from beanie import Document, Indexed
from pymongo import ASCENDING, DESCENDING, IndexModel
from pydantic import BaseModel, Field
from clearcare.shared.models import TimestampMixin


# ============== Embedded adherence data ==============

class DoseEntry(BaseModel):
    """One scheduled dose; identified by (date, time)."""
    date: str
    time: str = ""
    status: Literal["taken", "missed", "pending"] = "pending"
    reason: str = ""


class MedicationAdherence(BaseModel):
    schedule: List[DoseEntry] = []
    overall_progress: float = 0


class CheckIn(BaseModel):
    """One lifestyle check-in."""
    date: str
    completed: bool = False
    notes: str = ""
    metrics: dict = {}
    progress: float = 0


class LifestyleCompliance(BaseModel):
    check_ins: List[CheckIn] = []
    progress: float = 0


class AppointmentCompliance(BaseModel):
    appointment_type: Optional[str] = None
    scheduled_date: Optional[str] = None
    attended_date: Optional[str] = None
    status: Literal["scheduled", "attended", "missed", "cancelled", "rescheduled"] = "scheduled"
    notes: str = ""


# ============== Compliance Record ==============

class ComplianceRecord(Document, TimestampMixin):
    """Adherence tracking for one instruction; unique per (instruction_id, type)."""

    instruction_id: Indexed(str)
    patient_id: Indexed(str)
    type: str  # medication, lifestyle, appointment

    # compliant, partial, non-compliant, not-started
    status: str = "not-started"
    overall_percentage: float = 0

    medication_adherence: Optional[MedicationAdherence] = None
    lifestyle_compliance: Optional[LifestyleCompliance] = None
    appointment_compliance: Optional[AppointmentCompliance] = None

    last_updated_by: str

    class Settings:
        name = "compliance_records"
        use_state_management = True
        indexes = [
            IndexModel([("instruction_id", ASCENDING), ("type", ASCENDING)], unique=True),
            IndexModel([("patient_id", ASCENDING), ("updated_at", DESCENDING)]),
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "instruction_id": "65f0c0ffee0000000000aaaa",
                "patient_id": "65f0c0ffee0000000000bbbb",
                "type": "medication",
                "status": "partial",
                "overall_percentage": 66.67,
                "medication_adherence": {
                    "schedule": [
                        {"date": "2024-01-20", "time": "08:00", "status": "taken", "reason": ""},
                    ],
                    "overall_progress": 66.67,
                },
                "last_updated_by": "65f0c0ffee0000000000cccc",
            }
        }
