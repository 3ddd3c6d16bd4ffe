# Provider Tools Feature - Models

from typing import Optional
from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field
from clearcare.shared.models import TimestampMixin


class InstructionTemplate(Document, TimestampMixin):
    """Reusable instruction owned by a provider."""

    provider_id: Indexed(str)

    # name, description, content are encrypted strings; details is {"_encrypted": ...}
    name: str
    type: str  # medication, lifestyle, follow-up, warning
    description: Optional[str] = None
    content: str
    details: Optional[dict] = None

    class Settings:
        name = "instruction_templates"
        use_state_management = True


class GeneratedReport(Document):
    """A generated report snapshot, kept so it can be listed and fetched again."""

    scope: str  # provider, admin
    provider_id: Optional[str] = None
    type: str
    title: str
    description: str = ""
    generated_by: str
    date_range_start: str
    date_range_end: str
    format: str = "json"
    payload: dict = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "generated_reports"
        indexes = [
            [("scope", 1), ("provider_id", 1), ("generated_at", -1)],
        ]
