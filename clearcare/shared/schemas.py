from pydantic import BaseModel
from typing import Optional, Any, Dict, Generic, TypeVar
from datetime import datetime


T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope wrapping a typed payload."""

    success: bool = True
    message: Optional[str] = None
    data: T


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    detail: Optional[Dict[str, Any]] = None


class RequestMeta(BaseModel):
    """Client details recorded on history rows."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class HistoryEntryResponse(BaseModel):
    """A single history row, shared by instruction/patient/user trails."""

    id: str
    action: str
    changed_by: str
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime
