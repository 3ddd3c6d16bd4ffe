# Compliance Tracking Feature - Schemas

from typing import Optional, List, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator, model_validator
from clearcare.features.compliance.models import (
    MedicationAdherence,
    LifestyleCompliance,
    AppointmentCompliance,
)


ComplianceType = Literal["medication", "lifestyle", "appointment"]
ComplianceStatus = Literal["compliant", "partial", "non-compliant", "not-started"]

BLOB_TYPES = {
    "medication_adherence": "medication",
    "lifestyle_compliance": "lifestyle",
    "appointment_compliance": "appointment",
}


def _iso_date(value: str) -> str:
    """Validate a yyyy-mm-dd (or ISO datetime) string and return the date part."""
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        raise ValueError("date must be an ISO date (yyyy-mm-dd)")


# ============== Create / Update ==============

class CreateComplianceRequest(BaseModel):
    """Start tracking compliance for an instruction."""
    instruction_id: str = Field(..., min_length=1)
    type: ComplianceType
    status: ComplianceStatus = "not-started"
    overall_percentage: float = Field(0, ge=0, le=100)
    medication_adherence: Optional[MedicationAdherence] = None
    lifestyle_compliance: Optional[LifestyleCompliance] = None
    appointment_compliance: Optional[AppointmentCompliance] = None

    @model_validator(mode="after")
    def blob_matches_type(self):
        for field, blob_type in BLOB_TYPES.items():
            if getattr(self, field) is not None and blob_type != self.type:
                raise ValueError(f"{field} is not allowed for a {self.type} compliance record")
        return self


class UpdateComplianceRequest(BaseModel):
    status: Optional[ComplianceStatus] = None
    overall_percentage: Optional[float] = Field(None, ge=0, le=100)
    medication_adherence: Optional[MedicationAdherence] = None
    lifestyle_compliance: Optional[LifestyleCompliance] = None
    appointment_compliance: Optional[AppointmentCompliance] = None


class UpdateMedicationAdherenceRequest(BaseModel):
    """Record a dose; an existing (date, time) entry is updated in place."""
    date: str
    time: Optional[str] = None
    status: Optional[Literal["taken", "missed", "pending"]] = None
    reason: Optional[str] = None
    progress: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: str) -> str:
        return _iso_date(value)


class UpdateLifestyleComplianceRequest(BaseModel):
    """Append a lifestyle check-in."""
    date: str
    completed: Optional[bool] = None
    notes: Optional[str] = None
    metrics: Optional[dict] = None
    progress: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: str) -> str:
        return _iso_date(value)


# ============== Responses ==============

class InstructionSummary(BaseModel):
    id: str
    title: str
    type: str
    status: str


class ComplianceResponse(BaseModel):
    id: str
    instruction_id: str
    patient_id: str
    type: str
    status: str
    overall_percentage: float
    medication_adherence: Optional[MedicationAdherence] = None
    lifestyle_compliance: Optional[LifestyleCompliance] = None
    appointment_compliance: Optional[AppointmentCompliance] = None
    last_updated_by: str
    instruction: Optional[InstructionSummary] = None
    created_at: datetime
    updated_at: datetime


class TrendPoint(BaseModel):
    date: str  # yyyy-mm-dd
    score: int


class ComplianceMetrics(BaseModel):
    """Rolled-up compliance over the caller's visible records."""
    patient_id: str = ""
    overall_score: int = 0
    medication_adherence: int = 0
    lifestyle_compliance: int = 0
    appointment_compliance: int = 0
    active_instructions: int = 0
    compliant_instructions: int = 0
    trends: List[TrendPoint] = []
