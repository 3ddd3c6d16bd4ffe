# Care Instructions Feature - Models

from typing import Optional
from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field
from clearcare.shared.models import TimestampMixin, SoftDeleteMixin, HistoryMixin


# Detail blob field per instruction type
DETAIL_FIELDS = {
    "medication": "medication_details",
    "lifestyle": "lifestyle_details",
    "follow-up": "follow_up_details",
    "warning": "warning_details",
}


class CareInstruction(Document, TimestampMixin, SoftDeleteMixin):
    """A provider-authored instruction for one patient."""

    provider_id: Indexed(str)
    provider_name: str = ""
    patient_id: Indexed(str)
    patient_name: str = ""

    title: str
    type: str  # medication, lifestyle, follow-up, warning
    priority: str = "medium"  # low, medium, high, urgent

    # Encrypted free text
    content: str = ""

    # Encrypted detail blobs, stored as {"_encrypted": "enc:..."}
    medication_details: Optional[dict] = None
    lifestyle_details: Optional[dict] = None
    follow_up_details: Optional[dict] = None
    warning_details: Optional[dict] = None

    # draft, active, acknowledged, completed, expired, cancelled
    status: str = "active"

    assigned_date: datetime = Field(default_factory=datetime.utcnow)
    acknowledgment_deadline: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    acknowledged_date: Optional[datetime] = None

    compliance_tracking_enabled: bool = False
    lifestyle_tracking_enabled: bool = False

    version: int = 1

    class Settings:
        name = "care_instructions"
        use_state_management = True
        indexes = [
            [("patient_id", 1), ("deleted_at", 1), ("created_at", -1)],
        ]


class Acknowledgment(Document):
    """Append-only record of one acknowledgment step by the patient."""

    instruction_id: Indexed(str)
    patient_id: str
    acknowledgment_type: str  # receipt, understanding, commitment
    ip_address: str = ""
    user_agent: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "acknowledgments"


class InstructionHistory(Document, HistoryMixin):
    """Append-only audit trail of instruction mutations."""

    instruction_id: Indexed(str)

    class Settings:
        name = "instruction_history"
