"""Provider revenue reporting."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.domain.booking_state import as_utc
from washpoint.models.booking import CheckInHistory
from washpoint.models.facility import Facility
from washpoint.utils.chunking import fetch_in_chunks
from washpoint.utils.clock import utcnow


class FinanceService:
    """Revenue figures computed from completed visits."""

    async def list_visits(
        self, db: AsyncSession, facility_ids: list[UUID]
    ) -> list[CheckInHistory]:
        """Completed visits across facilities, most recent check-out first."""

        async def fetch(chunk: list[UUID]) -> list[CheckInHistory]:
            result = await db.execute(
                select(CheckInHistory).where(CheckInHistory.facility_id.in_(chunk))
            )
            return list(result.scalars().all())

        visits = await fetch_in_chunks(facility_ids, fetch)
        visits.sort(key=lambda v: as_utc(v.check_out_time), reverse=True)
        return visits

    async def revenue_summary(
        self,
        db: AsyncSession,
        facilities: list[Facility],
        now: datetime | None = None,
    ) -> dict:
        """Total, month-to-date and today's revenue across the given facilities.

        Day and month boundaries are taken in UTC.
        """
        now = as_utc(now or utcnow())
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        visits = await self.list_visits(db, [f.id for f in facilities])

        per_facility = {
            f.id: {"facility_id": f.id, "facility_name": f.name, "revenue": 0, "visits": 0}
            for f in facilities
        }
        total = month = today = 0
        for visit in visits:
            checked_out = as_utc(visit.check_out_time)
            total += visit.price
            if checked_out >= month_start:
                month += visit.price
            if checked_out >= day_start:
                today += visit.price
            row = per_facility[visit.facility_id]
            row["revenue"] += visit.price
            row["visits"] += 1

        return {
            "total_revenue": total,
            "month_revenue": month,
            "today_revenue": today,
            "total_visits": len(visits),
            "facilities": list(per_facility.values()),
        }


finance_service = FinanceService()
