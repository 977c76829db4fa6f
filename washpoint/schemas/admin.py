"""Admin moderation schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ModerationRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class RejectionRequest(BaseModel):
    reason: str = Field(min_length=3, max_length=1000)


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None
    action: str
    resource_type: str
    resource_id: UUID | None
    old_values: dict | None
    new_values: dict | None
    created_at: datetime
