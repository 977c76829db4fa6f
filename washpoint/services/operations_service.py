"""Incidents, inventory and maintenance for facility operators."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.core.exceptions import NotFoundError, ValidationError
from washpoint.domain.booking_state import as_utc
from washpoint.models.facility import Facility
from washpoint.models.operations import Incident, InventoryItem, MaintenanceTask
from washpoint.models.user import User
from washpoint.schemas.operations import (
    IncidentCreate,
    InventoryAdjust,
    InventoryItemCreate,
    MaintenanceTaskCreate,
)
from washpoint.services.catalog_service import catalog_service
from washpoint.utils.chunking import fetch_in_chunks
from washpoint.utils.clock import utcnow

logger = logging.getLogger(__name__)

INCIDENT_TRANSITIONS = {
    "pending": {"processing", "resolved"},
    "processing": {"resolved"},
    "resolved": set(),
}


class OperationsService:
    """Back-office records that hang off a facility."""

    # ============ INCIDENTS ============

    async def report_incident(
        self, db: AsyncSession, reporter: User, data: IncidentCreate
    ) -> Incident:
        await catalog_service.get_facility(db, data.facility_id)
        incident = Incident(
            facility_id=data.facility_id,
            reporter_id=reporter.id,
            booking_id=data.booking_id,
            title=data.title.strip(),
            description=data.description.strip(),
            status="pending",
        )
        db.add(incident)
        await db.flush()
        logger.info(f"Incident {incident.id} reported at facility {data.facility_id}")
        return incident

    async def get_incident(self, db: AsyncSession, incident_id: UUID) -> Incident:
        result = await db.execute(select(Incident).where(Incident.id == incident_id))
        incident = result.scalar_one_or_none()
        if not incident:
            raise NotFoundError("Incident", str(incident_id))
        return incident

    async def list_incidents(
        self, db: AsyncSession, facility_ids: list[UUID], status: str | None = None
    ) -> list[Incident]:
        async def fetch(chunk: list[UUID]) -> list[Incident]:
            query = select(Incident).where(Incident.facility_id.in_(chunk))
            if status:
                query = query.where(Incident.status == status)
            result = await db.execute(query)
            return list(result.scalars().all())

        incidents = await fetch_in_chunks(facility_ids, fetch)
        return sorted(incidents, key=lambda i: as_utc(i.created_at), reverse=True)

    async def set_incident_status(
        self, db: AsyncSession, incident: Incident, target: str
    ) -> Incident:
        if target not in INCIDENT_TRANSITIONS.get(incident.status, set()):
            raise ValidationError(f"Invalid incident transition: {incident.status} → {target}")
        incident.status = target
        if target == "resolved":
            incident.resolved_at = utcnow()
        await db.flush()
        return incident

    async def respond_to_incident(
        self, db: AsyncSession, incident: Incident, response: str
    ) -> Incident:
        """Reply to the reporter and close the incident."""
        if incident.status == "resolved":
            raise ValidationError("Incident is already resolved")
        incident.response = response.strip()
        incident.status = "resolved"
        incident.resolved_at = utcnow()
        await db.flush()
        return incident

    # ============ INVENTORY ============

    async def add_item(
        self, db: AsyncSession, facility: Facility, data: InventoryItemCreate
    ) -> InventoryItem:
        item = InventoryItem(
            facility_id=facility.id,
            item_name=data.item_name.strip(),
            quantity=data.quantity,
            unit=data.unit,
            min_threshold=data.min_threshold,
        )
        db.add(item)
        await db.flush()
        return item

    async def get_item(self, db: AsyncSession, item_id: UUID) -> InventoryItem:
        result = await db.execute(select(InventoryItem).where(InventoryItem.id == item_id))
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Inventory item", str(item_id))
        return item

    async def list_items(
        self, db: AsyncSession, facility_id: UUID, low_stock_only: bool = False
    ) -> list[InventoryItem]:
        result = await db.execute(
            select(InventoryItem)
            .where(InventoryItem.facility_id == facility_id)
            .order_by(InventoryItem.item_name)
        )
        items = list(result.scalars().all())
        if low_stock_only:
            items = [i for i in items if i.is_low_stock]
        return items

    async def adjust_item(
        self, db: AsyncSession, item: InventoryItem, data: InventoryAdjust
    ) -> InventoryItem:
        if data.quantity is None and data.delta is None and data.min_threshold is None:
            raise ValidationError("Nothing to update")
        if data.quantity is not None and data.delta is not None:
            raise ValidationError("Send either quantity or delta, not both")

        if data.quantity is not None:
            item.quantity = data.quantity
        elif data.delta is not None:
            new_quantity = item.quantity + data.delta
            if new_quantity < 0:
                raise ValidationError(
                    f"Only {item.quantity} {item.unit} of {item.item_name} left"
                )
            item.quantity = new_quantity
        if data.min_threshold is not None:
            item.min_threshold = data.min_threshold

        await db.flush()
        if item.is_low_stock:
            logger.info(f"Low stock: {item.item_name} at facility {item.facility_id} ({item.quantity})")
        return item

    # ============ MAINTENANCE ============

    async def schedule_task(
        self, db: AsyncSession, facility: Facility, data: MaintenanceTaskCreate
    ) -> MaintenanceTask:
        task = MaintenanceTask(
            facility_id=facility.id,
            room_id=data.room_id,
            task_type=data.task_type.strip(),
            description=data.description,
            scheduled_date=data.scheduled_date,
            status="pending",
        )
        db.add(task)
        await db.flush()
        return task

    async def get_task(self, db: AsyncSession, task_id: UUID) -> MaintenanceTask:
        result = await db.execute(select(MaintenanceTask).where(MaintenanceTask.id == task_id))
        task = result.scalar_one_or_none()
        if not task:
            raise NotFoundError("Maintenance task", str(task_id))
        return task

    async def list_tasks(
        self, db: AsyncSession, facility_id: UUID, status: str | None = None
    ) -> list[MaintenanceTask]:
        query = select(MaintenanceTask).where(MaintenanceTask.facility_id == facility_id)
        if status:
            query = query.where(MaintenanceTask.status == status)
        result = await db.execute(query.order_by(MaintenanceTask.scheduled_date.asc()))
        return list(result.scalars().all())

    async def complete_task(self, db: AsyncSession, task: MaintenanceTask) -> MaintenanceTask:
        if task.status != "pending":
            raise ValidationError("Task is already completed")
        task.status = "completed"
        task.completed_at = utcnow()
        await db.flush()
        return task


operations_service = OperationsService()
