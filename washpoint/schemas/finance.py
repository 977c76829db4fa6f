"""Provider finance schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class FacilityRevenue(BaseModel):
    facility_id: UUID
    facility_name: str
    revenue: int
    visits: int


class RevenueSummary(BaseModel):
    """Revenue from completed visits, in VND."""

    total_revenue: int
    month_revenue: int
    today_revenue: int
    total_visits: int
    facilities: list[FacilityRevenue]


class PriceUpdate(BaseModel):
    price: int = Field(gt=0)
