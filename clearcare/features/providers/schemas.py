# Provider Tools Feature - Schemas

from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field
from clearcare.features.instructions.schemas import InstructionType


ReportFormat = Literal["json", "csv", "pdf"]


# ============== Templates ==============

class CreateTemplateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: InstructionType
    description: Optional[str] = None
    content: str = Field(..., min_length=1)
    details: Optional[dict] = None


class UpdateTemplateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[InstructionType] = None
    description: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    details: Optional[dict] = None


class TemplateResponse(BaseModel):
    id: str
    provider_id: str
    name: str
    type: str
    description: Optional[str] = None
    content: str
    details: Optional[dict] = None
    created_at: datetime
    updated_at: datetime


# ============== Reports ==============

class DateRange(BaseModel):
    """Inclusive range; date-only bounds cover the whole day."""
    start: str
    end: str


class GenerateReportRequest(BaseModel):
    type: str = Field(..., min_length=1)
    date_range: DateRange
    format: ReportFormat = "json"


class PatientReportRow(BaseModel):
    patient_id: str
    instructions: int = 0
    acknowledged: int = 0
    compliance_avg: float = 0


class ComplianceReportData(BaseModel):
    date_range: DateRange
    total_patients: int
    total_instructions: int
    acknowledged_instructions: int
    compliance_records_count: int
    average_compliance_percent: float
    by_patient: List[PatientReportRow] = []


class ReportResponse(BaseModel):
    id: str
    type: str
    title: str
    description: str
    generated_at: datetime
    generated_by: str
    date_range: DateRange
    data: dict
    format: str
