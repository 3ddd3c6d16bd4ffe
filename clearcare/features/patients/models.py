# Patient Management Feature - Models

from typing import Optional, List
from beanie import Document, Indexed
from pydantic import Field
from clearcare.shared.models import TimestampMixin, SoftDeleteMixin, HistoryMixin


# PHI columns stored encrypted at rest
ENCRYPTED_FIELDS = (
    "date_of_birth",
    "medical_record_number",
    "phone",
    "address_street",
    "address_city",
    "address_state",
    "address_zip_code",
    "emergency_contact_name",
    "emergency_contact_relationship",
    "emergency_contact_phone",
)


class Patient(Document, TimestampMixin, SoftDeleteMixin):
    """Patient demographic record, 1:1 with a patient User."""

    # User account this record belongs to
    user_id: Indexed(str, unique=True)

    # Demographics (encrypted strings, see ENCRYPTED_FIELDS)
    date_of_birth: str = ""
    gender: Optional[str] = None
    medical_record_number: str = ""
    phone: Optional[str] = None
    address_street: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_zip_code: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None

    # Provider user ids allowed to see and manage this patient
    assigned_provider_ids: List[str] = Field(default_factory=list)

    class Settings:
        name = "patients"
        use_state_management = True
        indexes = [
            [("assigned_provider_ids", 1), ("deleted_at", 1)],
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "65f0c0ffee0000000000abcd",
                "date_of_birth": "1985-04-12",
                "gender": "female",
                "medical_record_number": "MRN-004512",
                "assigned_provider_ids": ["65f0c0ffee0000000000beef"],
            }
        }


class PatientHistory(Document, HistoryMixin):
    """Append-only audit trail of patient mutations."""

    patient_id: Indexed(str)

    class Settings:
        name = "patient_history"
