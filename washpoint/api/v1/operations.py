"""Facility operations: incidents, inventory and maintenance."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from washpoint.api.deps import DbSession, OwnedFacility, ProviderSession, Session
from washpoint.core.permissions import Permission, SessionContext
from washpoint.models.operations import Incident, InventoryItem, MaintenanceTask
from washpoint.schemas.operations import (
    IncidentCreate,
    IncidentReply,
    IncidentResponse,
    IncidentStatusUpdate,
    InventoryAdjust,
    InventoryItemCreate,
    InventoryItemResponse,
    MaintenanceTaskCreate,
    MaintenanceTaskResponse,
)
from washpoint.services.catalog_service import catalog_service
from washpoint.services.operations_service import operations_service

router = APIRouter()


async def _require_operator(db, facility_id: UUID, ctx: SessionContext) -> None:
    ctx.require(Permission.MANAGE_OPERATIONS)
    facility = await catalog_service.get_facility(db, facility_id)
    ctx.require_facility_owner(facility)


# ============ INCIDENTS ============


@router.post(
    "/incidents",
    response_model=IncidentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_incident(data: IncidentCreate, ctx: Session, db: DbSession) -> Incident:
    """Report a problem at a facility."""
    ctx.require(Permission.REPORT_INCIDENT)
    return await operations_service.report_incident(db, ctx.user, data)


@router.get("/incidents", response_model=list[IncidentResponse])
async def list_incidents(
    ctx: ProviderSession,
    db: DbSession,
    incident_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[Incident]:
    """Incidents across the provider's facilities, newest first."""
    facilities = await catalog_service.list_owned_facilities(db, ctx.user_id)
    return await operations_service.list_incidents(
        db, [f.id for f in facilities], incident_status
    )


@router.put("/incidents/{incident_id}/status", response_model=IncidentResponse)
async def set_incident_status(
    incident_id: UUID,
    data: IncidentStatusUpdate,
    ctx: ProviderSession,
    db: DbSession,
) -> Incident:
    incident = await operations_service.get_incident(db, incident_id)
    await _require_operator(db, incident.facility_id, ctx)
    incident = await operations_service.set_incident_status(db, incident, data.status)
    await db.refresh(incident)
    return incident


@router.post("/incidents/{incident_id}/response", response_model=IncidentResponse)
async def respond_to_incident(
    incident_id: UUID,
    data: IncidentReply,
    ctx: ProviderSession,
    db: DbSession,
) -> Incident:
    """Reply to the reporter and resolve the incident."""
    incident = await operations_service.get_incident(db, incident_id)
    await _require_operator(db, incident.facility_id, ctx)
    incident = await operations_service.respond_to_incident(db, incident, data.response)
    await db.refresh(incident)
    return incident


# ============ INVENTORY ============


@router.get("/facilities/{facility_id}/inventory", response_model=list[InventoryItemResponse])
async def list_inventory(
    facility: OwnedFacility,
    db: DbSession,
    low_stock: bool = False,
) -> list[InventoryItem]:
    return await operations_service.list_items(db, facility.id, low_stock_only=low_stock)


@router.post(
    "/facilities/{facility_id}/inventory",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_inventory_item(
    data: InventoryItemCreate,
    facility: OwnedFacility,
    db: DbSession,
) -> InventoryItem:
    item = await operations_service.add_item(db, facility, data)
    await db.refresh(item)
    return item


@router.patch("/inventory/{item_id}", response_model=InventoryItemResponse)
async def adjust_inventory_item(
    item_id: UUID,
    data: InventoryAdjust,
    ctx: ProviderSession,
    db: DbSession,
) -> InventoryItem:
    """Set a new quantity, or apply a stock delta (negative when used up)."""
    item = await operations_service.get_item(db, item_id)
    await _require_operator(db, item.facility_id, ctx)
    item = await operations_service.adjust_item(db, item, data)
    await db.refresh(item)
    return item


# ============ MAINTENANCE ============


@router.get("/facilities/{facility_id}/maintenance", response_model=list[MaintenanceTaskResponse])
async def list_maintenance(
    facility: OwnedFacility,
    db: DbSession,
    task_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[MaintenanceTask]:
    return await operations_service.list_tasks(db, facility.id, task_status)


@router.post(
    "/facilities/{facility_id}/maintenance",
    response_model=MaintenanceTaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_maintenance(
    data: MaintenanceTaskCreate,
    facility: OwnedFacility,
    db: DbSession,
) -> MaintenanceTask:
    task = await operations_service.schedule_task(db, facility, data)
    await db.refresh(task)
    return task


@router.post("/maintenance/{task_id}/complete", response_model=MaintenanceTaskResponse)
async def complete_maintenance(
    task_id: UUID,
    ctx: ProviderSession,
    db: DbSession,
) -> MaintenanceTask:
    task = await operations_service.get_task(db, task_id)
    await _require_operator(db, task.facility_id, ctx)
    task = await operations_service.complete_task(db, task)
    await db.refresh(task)
    return task
