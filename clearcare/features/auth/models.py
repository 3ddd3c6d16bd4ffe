from beanie import Document, Indexed
from pydantic import EmailStr
from typing import Optional
from datetime import datetime
from clearcare.shared.models import TimestampMixin, SoftDeleteMixin, HistoryMixin


class User(Document, TimestampMixin, SoftDeleteMixin):
    """User document model."""

    email: Indexed(EmailStr, unique=True)
    password_hash: str
    first_name: str
    last_name: str
    phone: Optional[str] = None

    # patient | provider | administrator
    role: Indexed(str) = "patient"

    # Two-factor fields are stored for the identity service; not used here
    two_factor_enabled: bool = False
    two_factor_secret: Optional[str] = None

    must_change_password: bool = False
    last_login_at: Optional[datetime] = None

    class Settings:
        name = "users"
        use_state_management = True

    class Config:
        json_schema_extra = {
            "example": {
                "email": "dr.smith@clearcare.local",
                "first_name": "Jane",
                "last_name": "Smith",
                "role": "provider",
            }
        }

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserHistory(Document, HistoryMixin):
    """Append-only audit trail of user mutations."""

    user_id: Indexed(str)

    class Settings:
        name = "user_history"
