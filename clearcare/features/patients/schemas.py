# Patient Management Feature - Schemas

from typing import Optional, List, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field


Gender = Literal["male", "female", "other", "prefer_not_to_say"]


# ============== Create Patient ==============

class CreatePatientRequest(BaseModel):
    """Request schema for creating a patient record for an existing user."""
    user_id: str = Field(..., min_length=1, description="User ID of the patient account")
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    medical_record_number: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    address_street: Optional[str] = Field(None, max_length=200)
    address_city: Optional[str] = Field(None, max_length=100)
    address_state: Optional[str] = Field(None, max_length=100)
    address_zip_code: Optional[str] = Field(None, max_length=20)
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_relationship: Optional[str] = Field(None, max_length=50)
    emergency_contact_phone: Optional[str] = Field(None, max_length=20)
    assigned_provider_ids: List[str] = Field(default_factory=list)


# ============== Update Patient ==============

class UpdatePatientRequest(BaseModel):
    """Request schema for updating patient information."""
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    medical_record_number: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    address_street: Optional[str] = Field(None, max_length=200)
    address_city: Optional[str] = Field(None, max_length=100)
    address_state: Optional[str] = Field(None, max_length=100)
    address_zip_code: Optional[str] = Field(None, max_length=20)
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_relationship: Optional[str] = Field(None, max_length=50)
    emergency_contact_phone: Optional[str] = Field(None, max_length=20)
    assigned_provider_ids: Optional[List[str]] = None


# ============== Patient Response ==============

class AddressSchema(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class EmergencyContactSchema(BaseModel):
    name: str = ""
    relationship: str = ""
    phone: str = ""


class PatientResponse(BaseModel):
    """Response schema for patient data (PHI decrypted)."""
    id: str
    user_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    date_of_birth: str = ""
    gender: Optional[str] = None
    medical_record_number: str = ""
    phone: Optional[str] = None
    address: Optional[AddressSchema] = None
    emergency_contact: Optional[EmergencyContactSchema] = None
    assigned_provider_ids: List[str] = []
    created_at: datetime
    updated_at: datetime
