"""Celery background tasks.

This module contains the periodic jobs for:
- Expiring booking holds that were never checked in
- Reporting low stock to facility operators
"""

import asyncio
import logging

from celery import shared_task
from sqlalchemy import select

from washpoint.database import get_db_context
from washpoint.models.facility import Facility
from washpoint.models.operations import InventoryItem
from washpoint.services.booking_service import booking_service

logger = logging.getLogger(__name__)

# Pooled asyncpg connections are bound to the loop that opened them, so every
# task in a worker process runs on this one loop.
_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    """Run async function in sync context."""
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


# ==================== BOOKING TASKS ====================


@shared_task(bind=True, max_retries=3)
def expire_stale_bookings(self):
    """Release every pending booking whose 15-minute hold has passed.

    Runs every minute. Bookings already expired lazily at check-in are
    skipped, so overlapping runs are harmless.
    """
    try:
        expired = run_async(_expire_stale_bookings())
        return {"status": "success", "expired": expired}
    except Exception as exc:
        logger.error(f"Expiry sweep task failed: {exc}")
        self.retry(exc=exc, countdown=30)


async def _expire_stale_bookings() -> int:
    async with get_db_context() as db:
        return await booking_service.expire_overdue(db)


# ==================== OPERATIONS TASKS ====================


@shared_task
def report_low_stock():
    """Log inventory items at or below their reorder threshold, per facility."""
    return run_async(_report_low_stock())


async def _report_low_stock() -> dict:
    async with get_db_context() as db:
        result = await db.execute(
            select(InventoryItem, Facility.name)
            .join(Facility, Facility.id == InventoryItem.facility_id)
            .where(
                Facility.status != "deleted",
                InventoryItem.quantity <= InventoryItem.min_threshold,
            )
            .order_by(Facility.name, InventoryItem.item_name)
        )
        rows = result.all()

    by_facility: dict[str, list[str]] = {}
    for item, facility_name in rows:
        by_facility.setdefault(facility_name, []).append(
            f"{item.item_name} ({item.quantity} {item.unit})"
        )

    for facility_name, items in by_facility.items():
        logger.warning(f"Low stock at {facility_name}: {', '.join(items)}")

    return {"facilities": len(by_facility), "items": len(rows)}
