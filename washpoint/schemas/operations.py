"""Incident, inventory and maintenance schemas."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============ INCIDENTS ============


class IncidentCreate(BaseModel):
    facility_id: UUID
    booking_id: UUID | None = None
    title: str = Field(min_length=3, max_length=150)
    description: str = Field(min_length=3, max_length=2000)


class IncidentStatusUpdate(BaseModel):
    status: Literal["processing", "resolved"]


class IncidentReply(BaseModel):
    response: str = Field(min_length=1, max_length=2000)


class IncidentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    facility_id: UUID
    reporter_id: UUID
    booking_id: UUID | None
    title: str
    description: str
    status: str
    response: str | None
    resolved_at: datetime | None
    created_at: datetime


# ============ INVENTORY ============


class InventoryItemCreate(BaseModel):
    item_name: str = Field(min_length=1, max_length=100)
    quantity: int = Field(default=0, ge=0)
    unit: str = Field(default="pcs", max_length=20)
    min_threshold: int = Field(default=0, ge=0)


class InventoryAdjust(BaseModel):
    """Either set an absolute quantity or apply a delta."""

    quantity: int | None = Field(None, ge=0)
    delta: int | None = None
    min_threshold: int | None = Field(None, ge=0)


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    facility_id: UUID
    item_name: str
    quantity: int
    unit: str
    min_threshold: int
    is_low_stock: bool
    updated_at: datetime


# ============ MAINTENANCE ============


class MaintenanceTaskCreate(BaseModel):
    task_type: str = Field(min_length=1, max_length=50)
    description: str | None = Field(None, max_length=1000)
    scheduled_date: date
    room_id: UUID | None = None


class MaintenanceTaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    facility_id: UUID
    room_id: UUID | None
    task_type: str
    description: str | None
    scheduled_date: date
    status: str
    completed_at: datetime | None
    created_at: datetime
