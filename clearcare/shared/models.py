from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class TimestampMixin(BaseModel):
    """Mixin for adding timestamp fields to documents."""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def update_timestamp(self):
        """Update the updated_at timestamp."""
        self.updated_at = datetime.utcnow()


class SoftDeleteMixin(BaseModel):
    """Mixin for documents that are soft-deleted via `deleted_at`."""

    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self):
        self.deleted_at = datetime.utcnow()


class HistoryMixin(BaseModel):
    """Fields shared by the append-only history collections."""

    action: str  # create, update, delete, acknowledge, restore
    changed_by: str
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
