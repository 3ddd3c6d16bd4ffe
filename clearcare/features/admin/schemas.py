# Administration Feature - Schemas

from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from clearcare.features.auth.schemas import Role, _check_password_strength


# ============== Users ==============

class CreateUserRequest(BaseModel):
    """Admin-created account; a temporary password is generated when none is given."""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Role
    password: Optional[str] = Field(None, min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password_strength(v) if v is not None else v


class UpdateUserRequest(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[Role] = None
    password: Optional[str] = Field(None, min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password_strength(v) if v is not None else v


# ============== Roles ==============

class RoleResponse(BaseModel):
    id: str
    name: str
    description: str
    permissions: List[str]
    is_system_role: bool = True
    user_count: int = 0
    created_at: datetime
    updated_at: datetime


# ============== System settings ==============

class PasswordPolicy(BaseModel):
    min_length: int = 8
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = True
    expiration_days: int = 90


class NotificationSettings(BaseModel):
    email_enabled: bool = True
    sms_enabled: bool = False
    default_notification_types: List[str] = ["instruction_assigned", "compliance_reminder"]


class DataRetention(BaseModel):
    audit_logs_days: int = 2555
    compliance_records_days: int = 2555
    archived_instructions_days: int = 2555


class SystemSettings(BaseModel):
    session_timeout: int = 30  # minutes
    password_policy: PasswordPolicy = PasswordPolicy()
    notification_settings: NotificationSettings = NotificationSettings()
    data_retention: DataRetention = DataRetention()
    feature_flags: Dict[str, bool] = {}


class UpdateSystemSettingsRequest(BaseModel):
    """Partial update; nested sections are merged key by key."""
    session_timeout: Optional[int] = Field(None, ge=1)
    password_policy: Optional[dict] = None
    notification_settings: Optional[dict] = None
    data_retention: Optional[dict] = None
    feature_flags: Optional[Dict[str, bool]] = None
