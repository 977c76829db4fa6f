"""Tests for incidents, inventory, maintenance and revenue reporting."""
from datetime import date, timedelta

import pytest
from conftest import T0, make_facility

from washpoint.core.exceptions import ValidationError
from washpoint.domain import checkin_code
from washpoint.schemas.operations import (
    IncidentCreate,
    InventoryAdjust,
    InventoryItemCreate,
    MaintenanceTaskCreate,
)
from washpoint.services.booking_service import booking_service
from washpoint.services.finance_service import finance_service
from washpoint.services.operations_service import operations_service


class TestIncidents:
    async def test_report_and_resolve(self, db_session, customer, facility):
        incident = await operations_service.report_incident(
            db_session,
            customer,
            IncidentCreate(facility_id=facility.id, title="Hết nước nóng", description="Phòng 101 không có nước nóng"),
        )
        assert incident.status == "pending"

        await operations_service.set_incident_status(db_session, incident, "processing")
        resolved = await operations_service.respond_to_incident(db_session, incident, "Đã sửa bình nóng lạnh")
        assert resolved.status == "resolved"
        assert resolved.resolved_at is not None

        with pytest.raises(ValidationError):
            await operations_service.respond_to_incident(db_session, incident, "Again")
        with pytest.raises(ValidationError):
            await operations_service.set_incident_status(db_session, incident, "processing")

    async def test_list_by_status(self, db_session, customer, facility, roomless_facility):
        for f in (facility, roomless_facility):
            await operations_service.report_incident(
                db_session, customer, IncidentCreate(facility_id=f.id, title="Sàn trơn", description="Sàn rất trơn")
            )
        await db_session.commit()

        both = await operations_service.list_incidents(db_session, [facility.id, roomless_facility.id])
        assert len(both) == 2
        assert await operations_service.list_incidents(db_session, [facility.id], status="resolved") == []


class TestInventory:
    async def test_adjust_and_low_stock(self, db_session, facility):
        item = await operations_service.add_item(
            db_session, facility, InventoryItemCreate(item_name="Khăn tắm", quantity=20, min_threshold=5)
        )
        await operations_service.adjust_item(db_session, item, InventoryAdjust(delta=-16))
        assert item.quantity == 4
        assert item.is_low_stock

        low = await operations_service.list_items(db_session, facility.id, low_stock_only=True)
        assert [i.id for i in low] == [item.id]

        await operations_service.adjust_item(db_session, item, InventoryAdjust(quantity=50))
        assert not item.is_low_stock

    async def test_cannot_go_negative(self, db_session, facility):
        item = await operations_service.add_item(
            db_session, facility, InventoryItemCreate(item_name="Dầu gội", quantity=2)
        )
        with pytest.raises(ValidationError, match="Only 2"):
            await operations_service.adjust_item(db_session, item, InventoryAdjust(delta=-3))

    async def test_ambiguous_adjustment(self, db_session, facility):
        item = await operations_service.add_item(db_session, facility, InventoryItemCreate(item_name="Xà phòng"))
        with pytest.raises(ValidationError):
            await operations_service.adjust_item(db_session, item, InventoryAdjust(quantity=1, delta=1))
        with pytest.raises(ValidationError):
            await operations_service.adjust_item(db_session, item, InventoryAdjust())


class TestMaintenance:
    async def test_schedule_and_complete(self, db_session, facility, room_101):
        task = await operations_service.schedule_task(
            db_session,
            facility,
            MaintenanceTaskCreate(task_type="plumbing", scheduled_date=date(2026, 3, 2), room_id=room_101.id),
        )
        pending = await operations_service.list_tasks(db_session, facility.id, status="pending")
        assert [t.id for t in pending] == [task.id]

        done = await operations_service.complete_task(db_session, task)
        assert done.status == "completed"
        with pytest.raises(ValidationError):
            await operations_service.complete_task(db_session, task)


class TestFinance:
    async def visit(self, db_session, customer, customer_ctx, provider_ctx, facility, room_id, day):
        start = T0 + timedelta(days=day)
        booking = await booking_service.create_booking(db_session, customer, facility.id, room_id, now=start)
        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx, now=start
        )
        await booking_service.check_out(
            db_session, booking.id, provider_ctx, now=start + timedelta(minutes=30)
        )
        await db_session.commit()

    async def test_revenue_summary(
        self, db_session, customer, customer_ctx, provider, provider_ctx, facility, room_101, room_102
    ):
        second = await make_facility(db_session, provider, name="Nhà Tắm Gò Vấp", price=15000)

        # T0 is 2026-03-01; the day -1 visit falls in February
        await self.visit(db_session, customer, customer_ctx, provider_ctx, facility, room_101.id, day=-1)
        await self.visit(db_session, customer, customer_ctx, provider_ctx, facility, room_102.id, day=0)
        await self.visit(db_session, customer, customer_ctx, provider_ctx, second, None, day=0)

        summary = await finance_service.revenue_summary(
            db_session, [facility, second], now=T0 + timedelta(hours=3)
        )
        assert summary["total_revenue"] == 30000 + 50000 + 15000
        assert summary["month_revenue"] == 50000 + 15000
        assert summary["today_revenue"] == 50000 + 15000
        assert summary["total_visits"] == 3

        per_facility = {row["facility_id"]: row for row in summary["facilities"]}
        assert per_facility[facility.id]["revenue"] == 80000
        assert per_facility[second.id]["visits"] == 1

        visits = await finance_service.list_visits(db_session, [facility.id, second.id])
        assert len(visits) == 3
        assert visits[-1].price == 30000
