# Care Instructions Feature - Schemas

from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field, model_validator


InstructionType = Literal["medication", "lifestyle", "follow-up", "warning"]
InstructionPriority = Literal["low", "medium", "high", "urgent"]
InstructionStatus = Literal["draft", "active", "acknowledged", "completed", "expired", "cancelled"]
AcknowledgmentType = Literal["receipt", "understanding", "commitment"]


# ============== Detail blobs (one per instruction type) ==============

class MedicationDetails(BaseModel):
    name: str
    dosage: Optional[str] = None
    unit: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None
    special_instructions: Optional[str] = None
    refill_information: Optional[str] = None
    side_effects: Optional[str] = None


class LifestyleDetails(BaseModel):
    category: str  # diet, exercise, sleep, ...
    instructions: Optional[str] = None
    goals: Optional[str] = None
    milestones: List[str] = []
    tracking_requirements: Optional[str] = None


class FollowUpDetails(BaseModel):
    appointment_type: str
    timeframe: Optional[str] = None
    preparation_instructions: Optional[str] = None
    contact_information: Optional[str] = None


class WarningDetails(BaseModel):
    severity: Optional[str] = None
    symptoms: List[str] = []
    actions: Optional[str] = None
    emergency_contact: Optional[str] = None


_DETAIL_TYPES = {
    "medication_details": "medication",
    "lifestyle_details": "lifestyle",
    "follow_up_details": "follow-up",
    "warning_details": "warning",
}


class _InstructionDetailsMixin(BaseModel):
    medication_details: Optional[MedicationDetails] = None
    lifestyle_details: Optional[LifestyleDetails] = None
    follow_up_details: Optional[FollowUpDetails] = None
    warning_details: Optional[WarningDetails] = None


# ============== Create / Update ==============

class CreateInstructionRequest(_InstructionDetailsMixin):
    """Request schema for a provider creating an instruction."""
    patient_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    type: InstructionType
    priority: InstructionPriority = "medium"
    content: str = Field(..., min_length=1)
    assigned_date: Optional[datetime] = None
    acknowledgment_deadline: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    compliance_tracking_enabled: bool = False
    lifestyle_tracking_enabled: bool = False

    @model_validator(mode="after")
    def details_match_type(self):
        """Only the detail blob of the instruction's own type may be supplied."""
        for field, detail_type in _DETAIL_TYPES.items():
            if getattr(self, field) is not None and detail_type != self.type:
                raise ValueError(f"{field} is not allowed for a {self.type} instruction")
        return self


class UpdateInstructionRequest(_InstructionDetailsMixin):
    """Request schema for updating an instruction. All fields optional."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[InstructionType] = None
    priority: Optional[InstructionPriority] = None
    content: Optional[str] = Field(None, min_length=1)
    status: Optional[InstructionStatus] = None
    assigned_date: Optional[datetime] = None
    acknowledgment_deadline: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    compliance_tracking_enabled: Optional[bool] = None
    lifestyle_tracking_enabled: Optional[bool] = None


class AcknowledgeInstructionRequest(BaseModel):
    acknowledgment_type: AcknowledgmentType


# ============== Responses ==============

class AcknowledgmentResponse(BaseModel):
    id: str
    instruction_id: str
    patient_id: str
    acknowledgment_type: str
    ip_address: str = ""
    user_agent: str = ""
    timestamp: datetime


class InstructionResponse(BaseModel):
    """Instruction with content and details decrypted."""
    id: str
    provider_id: str
    provider_name: str
    patient_id: str
    patient_name: str
    title: str
    type: str
    priority: str
    content: str
    medication_details: Optional[dict] = None
    lifestyle_details: Optional[dict] = None
    follow_up_details: Optional[dict] = None
    warning_details: Optional[dict] = None
    status: str
    assigned_date: datetime
    acknowledgment_deadline: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    acknowledged_date: Optional[datetime] = None
    compliance_tracking_enabled: bool
    lifestyle_tracking_enabled: bool
    version: int
    acknowledgments: List[AcknowledgmentResponse] = []
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str
