# Audit Log Feature - Models

from typing import Optional
from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field


class AuditLog(Document):
    """One audited API call or administrative action."""

    user_id: Indexed(str)
    user_email: str = ""
    user_name: str = ""
    action: Indexed(str)  # read, write, delete, create
    resource_type: str
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    ip_address: str = ""
    user_agent: str = ""
    status: str = "success"  # success, failure, denied
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "audit_logs"
        indexes = [
            [("timestamp", -1)],
        ]
