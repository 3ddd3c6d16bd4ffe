# Audit Log Feature - Schemas

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: str
    user_id: str
    user_email: str
    user_name: str
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    ip_address: str
    user_agent: str
    status: str
    details: Optional[dict] = None
    timestamp: datetime


class AuditLogPage(BaseModel):
    """Paginated audit log listing."""
    items: List[AuditLogResponse]
    total: int
    page: int
    limit: int


class AuditLogCount(BaseModel):
    total: int
